"""Removal of invisible Unicode artifacts left in OCR output.

Bidi controls, zero-width joiners and stray format characters break
regex matching on Arabic text without being visible to a reviewer.
"""

import re

from dzocr.utils.logger import get_logger

from .rules import StageResult

logger = get_logger(__name__)

DIRECTION_MARKS_RE = re.compile(
    "["
    "\u200e\u200f"  # LRM, RLM
    "\u202a-\u202e"  # embeddings and overrides
    "\u2066-\u2069"  # isolates
    "\u061c"  # Arabic letter mark
    "\ufeff"  # BOM
    "\u200c\u200d"  # ZWNJ, ZWJ
    "\u00ad"  # soft hyphen
    "\u2028\u2029"  # line and paragraph separators
    "\u180e"  # Mongolian vowel separator
    "\u2061-\u2064"  # invisible operators
    "]"
)
ODD_SPACES_RE = re.compile("[\u00a0\u2000-\u200a\u202f\u3000\t]")


def strip_direction_marks(text: str) -> StageResult:
    """Remove bidi marks and other invisible format characters.

    Args:
        text: Raw OCR text.

    Returns:
        Cleaned text and the number of characters removed.
    """
    cleaned, count = DIRECTION_MARKS_RE.subn("", text)
    if count:
        logger.debug("Removed %d invisible characters", count)
    applied = [f"invisible direction/format marks removed (x{count})"] if count else []
    return StageResult(cleaned, count, applied)


def normalize_spaces(text: str) -> StageResult:
    """Replace no-break, typographic and ideographic spaces by a plain space."""
    cleaned, count = ODD_SPACES_RE.subn(" ", text)
    applied = [f"special spaces normalized (x{count})"] if count else []
    return StageResult(cleaned, count, applied)
