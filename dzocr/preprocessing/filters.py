"""Image filters for scanned legal documents.

Grayscale conversion, speckle removal, denoising, CLAHE contrast,
sharpening of thin Arabic strokes and binarisation.
"""

import cv2
import numpy as np

from dzocr.utils.logger import get_logger

logger = get_logger(__name__)

DENOISE_METHODS = ("median", "bilateral")
BINARIZE_METHODS = ("otsu", "adaptive")

_SHARPEN_KERNEL = np.array([[0, -1, 0], [-1, 5, -1], [0, -1, 0]], dtype=np.float32)


def to_gray(image: np.ndarray) -> np.ndarray:
    """Convert a BGR, BGRA or grayscale image to grayscale."""
    if image.ndim == 2:
        return image
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
    return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)


def remove_artifacts(image: np.ndarray, kernel_size: int = 2) -> np.ndarray:
    """Remove isolated specks left by the scanner.

    A morphological opening on the inverted page erases dark dots smaller
    than the kernel without touching text strokes.

    Args:
        image: Grayscale image, dark text on light background.
        kernel_size: Largest speck size removed, in pixels.

    Returns:
        Cleaned grayscale image.
    """
    gray = to_gray(image)
    kernel = cv2.getStructuringElement(cv2.MORPH_RECT, (kernel_size, kernel_size))
    inverted = cv2.bitwise_not(gray)
    opened = cv2.morphologyEx(inverted, cv2.MORPH_OPEN, kernel)
    logger.debug("Removed artifacts (kernel=%d)", kernel_size)
    return cv2.bitwise_not(opened)


def denoise(image: np.ndarray, method: str = "median") -> np.ndarray:
    """Reduce scan noise.

    Args:
        image: Input image.
        method: ``"median"`` (salt-and-pepper noise) or ``"bilateral"``
            (edge preserving).

    Returns:
        Denoised image.

    Raises:
        ValueError: If an unsupported method is specified.
    """
    if method == "median":
        result = cv2.medianBlur(image, 3)
    elif method == "bilateral":
        result = cv2.bilateralFilter(image, 9, 75, 75)
    else:
        raise ValueError(f"Unsupported denoise method: {method}")
    logger.debug("Applied %s denoise", method)
    return result


def apply_clahe(
    image: np.ndarray,
    clip_limit: float = 2.0,
    tile_size: int = 8,
) -> np.ndarray:
    """Enhance contrast with CLAHE.

    Args:
        image: Input image (BGR or grayscale).
        clip_limit: Threshold for contrast limiting.
        tile_size: Size of the grid for histogram equalization.

    Returns:
        Contrast-enhanced grayscale image.
    """
    clahe = cv2.createCLAHE(clipLimit=clip_limit, tileGridSize=(tile_size, tile_size))
    result = clahe.apply(to_gray(image))
    logger.debug("Applied CLAHE (clip=%.1f, tile=%d)", clip_limit, tile_size)
    return result


def sharpen(image: np.ndarray) -> np.ndarray:
    """Sharpen stroke edges, which helps with dots and diacritics."""
    return cv2.filter2D(image, -1, _SHARPEN_KERNEL)


def binarize(
    image: np.ndarray, method: str = "adaptive", block_size: int = 31, c: int = 15
) -> np.ndarray:
    """Binarize a page.

    Args:
        image: Input image (BGR or grayscale).
        method: ``"otsu"`` for a global threshold or ``"adaptive"`` for a
            Gaussian local threshold, better on unevenly lit scans.
        block_size: Neighbourhood size for the adaptive threshold (odd).
        c: Constant subtracted from the local mean.

    Returns:
        Binary image with pixel values 0 or 255.

    Raises:
        ValueError: If an unsupported method is specified.
    """
    gray = to_gray(image)
    if method == "otsu":
        _, result = cv2.threshold(gray, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)
    elif method == "adaptive":
        result = cv2.adaptiveThreshold(
            gray,
            255,
            cv2.ADAPTIVE_THRESH_GAUSSIAN_C,
            cv2.THRESH_BINARY,
            block_size,
            c,
        )
    else:
        raise ValueError(f"Unsupported binarize method: {method}")
    logger.debug("Applied %s binarization", method)
    return result
