"""Skew correction for scanned pages.

Text lines and the rules printed around Journal Officiel columns are the
long straight segments on a page; their median angle is the skew.
"""

import cv2
import numpy as np

from dzocr.utils.logger import get_logger

from .filters import to_gray

logger = get_logger(__name__)

MAX_SKEW = 45.0


def detect_skew_angle(image: np.ndarray) -> float:
    """Estimate the skew angle of a page in degrees.

    Only near-horizontal segments count, so vertical column rules do not
    pull the estimate towards 90 degrees.

    Args:
        image: Input image (BGR or grayscale).

    Returns:
        Estimated skew angle, 0.0 when no lines are found.
    """
    edges = cv2.Canny(to_gray(image), 50, 150, apertureSize=3)
    lines = cv2.HoughLinesP(edges, 1, np.pi / 180, 100, minLineLength=100, maxLineGap=10)
    if lines is None:
        logger.debug("No lines detected for skew estimation")
        return 0.0

    angles = [
        float(np.degrees(np.arctan2(y2 - y1, x2 - x1))) for x1, y1, x2, y2 in lines[:, 0]
    ]
    angles = [a for a in angles if abs(a) < MAX_SKEW]
    if not angles:
        return 0.0

    angle = float(np.median(angles))
    logger.debug("Detected skew angle: %.2f degrees", angle)
    return angle


def deskew(image: np.ndarray, angle_threshold: float = 0.5) -> np.ndarray:
    """Rotate a page so its text lines are horizontal.

    Args:
        image: Input image (BGR or grayscale).
        angle_threshold: Skews smaller than this are left alone.

    Returns:
        Deskewed image with the same shape and dtype as the input.
    """
    angle = detect_skew_angle(image)
    if abs(angle) < angle_threshold:
        return image

    h, w = image.shape[:2]
    matrix = cv2.getRotationMatrix2D((w // 2, h // 2), angle, 1.0)
    result = cv2.warpAffine(
        image,
        matrix,
        (w, h),
        flags=cv2.INTER_CUBIC,
        borderMode=cv2.BORDER_REPLICATE,
    )
    logger.info("Applied deskew correction: %.2f degrees", angle)
    return result
