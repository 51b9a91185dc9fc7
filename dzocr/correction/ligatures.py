"""Arabic ligature and presentation-form folding.

Tesseract and PDF text layers often emit presentation forms (glyph
variants and lam-alef ligatures) instead of base letters, which defeats
every downstream pattern.
"""

import re
import unicodedata

from dzocr.utils.logger import get_logger

from .rules import AR, StageResult

logger = get_logger(__name__)

# Folded before NFKC, which would expand them to full phrases.
SPECIAL_LIGATURES: dict[str, str] = {
    "\ufdf2": "الله",
    "\ufdfa": "(ص)",
    "\ufdfb": "جل جلاله",
}

TATWEEL = "\u0640"
# A standalone lam keeps one tatweel, as in الموافق لـ.
_TATWEEL_RE = re.compile(f"((?<![{AR}])ل){TATWEEL}+(?![{AR}])|{TATWEEL}+")
_PRESENTATION_FORMS_RE = re.compile("[\ufb50-\ufdff\ufe70-\ufefe]")
_TANWEEN_JOIN_RE = re.compile(f"([{AR}])([\u064b-\u064d])(?=[{AR}])(?!\u0627)")


def _fold_presentation_form(match: re.Match[str]) -> str:
    char = match.group(0)
    if char in SPECIAL_LIGATURES:
        return SPECIAL_LIGATURES[char]
    return unicodedata.normalize("NFKC", char)


def fix_ligatures(text: str) -> StageResult:
    """Fold ligatures and presentation forms to base Arabic letters.

    Also removes tatweel, except the one of a standalone ``لـ``, and
    restores the word boundary lost after a tanween mark, which can only
    end a word (an alef after the mark is the usual spelling of fathatan
    and stays attached).

    Args:
        text: Text to normalize.

    Returns:
        Normalized text and the number of characters changed.
    """
    applied: list[str] = []

    folded, forms = _PRESENTATION_FORMS_RE.subn(_fold_presentation_form, text)
    if forms:
        applied.append(f"presentation forms and ligatures folded (x{forms})")

    tatweels = 0

    def _drop_tatweel(match: re.Match[str]) -> str:
        nonlocal tatweels
        kept = match.group(1) + TATWEEL if match.group(1) else ""
        tatweels += len(match.group(0)) - len(kept)
        return kept

    folded = _TATWEEL_RE.sub(_drop_tatweel, folded)
    if tatweels:
        applied.append(f"tatweel removed (x{tatweels})")

    folded, tanween = _TANWEEN_JOIN_RE.subn(r"\1\2 ", folded)
    if tanween:
        applied.append(f"word boundary restored after tanween (x{tanween})")

    count = forms + tatweels + tanween
    if count:
        logger.debug(
            "Ligatures: %d forms, %d tatweel, %d tanween", forms, tatweels, tanween
        )
    return StageResult(folded, count, applied)
