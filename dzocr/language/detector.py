"""Arabic/French/mixed language classification for OCR text.

Classification uses the share of Arabic letters among all Arabic and
Latin letters. Digits, punctuation and whitespace do not count.
"""

import re
from dataclasses import dataclass
from enum import StrEnum

from dzocr.utils.logger import get_logger

logger = get_logger(__name__)

ARABIC_LETTER_RE = re.compile(
    "[\u0620-\u064a\u066e-\u06d3\u06d5\u06fa-\u06ff"
    "\u0750-\u077f\u08a0-\u08ff\ufb50-\ufdff\ufe70-\ufefc]"
)
LATIN_LETTER_RE = re.compile("[A-Za-z\u00c0-\u00d6\u00d8-\u00f6\u00f8-\u00ff]")
FRENCH_WORD_RE = re.compile("\\b[A-Za-z\u00c0-\u00ff]{2,}\\b")
_ARABIC_BLOCK_RE = re.compile("[\u0600-\u06ff]")


class Language(StrEnum):
    """Language classes for a piece of text."""

    ARABIC = "ar"
    FRENCH = "fr"
    MIXED = "mixed"


_LABELS: dict[Language, tuple[str, str, str, str]] = {
    # preprocessing label, display label, tesseract languages, direction
    Language.ARABIC: ("Standard arabe", "العربية", "ara", "rtl"),
    Language.FRENCH: ("Standard français", "Français", "fra", "ltr"),
    Language.MIXED: ("Bilingue (Arabe + Français)", "Bilingue (AR/FR)", "ara+fra", "mixed"),
}


@dataclass
class LanguageReport:
    """Language statistics and classification for a text."""

    language: Language
    arabic_ratio: float
    arabic_chars: int
    latin_chars: int
    french_words: int
    meaningful_chars: int
    preprocessing: str
    display_label: str
    tesseract_lang: str
    direction: str

    def to_dict(self) -> dict[str, object]:
        return {
            "language": self.language.value,
            "arabic_ratio": round(self.arabic_ratio, 4),
            "arabic_chars": self.arabic_chars,
            "latin_chars": self.latin_chars,
            "french_words": self.french_words,
            "meaningful_chars": self.meaningful_chars,
            "preprocessing": self.preprocessing,
            "display_label": self.display_label,
            "tesseract_lang": self.tesseract_lang,
            "direction": self.direction,
        }


def count_arabic(text: str) -> int:
    """Count Arabic letters, presentation forms included."""
    return len(ARABIC_LETTER_RE.findall(text))


def count_latin(text: str) -> int:
    """Count Latin letters, accented French letters included."""
    return len(LATIN_LETTER_RE.findall(text))


def arabic_ratio(text: str) -> float:
    """Share of Arabic letters among Arabic and Latin letters.

    Args:
        text: Text to measure.

    Returns:
        Ratio in [0, 1]; ``0.0`` when the text has no letters.
    """
    arabic = count_arabic(text)
    total = arabic + count_latin(text)
    return arabic / total if total else 0.0


def select_ocr_profile(text: str) -> str:
    """Pick the Tesseract profile suited to a sample of page text.

    The share is taken over non-whitespace characters, so numbers and
    punctuation dilute it. Pages dominated by Arabic use the Arabic
    profile, bilingual Journal Officiel pages the bilingual one.

    Args:
        text: Text from a first OCR pass or an earlier page.

    Returns:
        Profile name: ``arabic_primary``, ``bilingual``,
        ``administrative`` or ``legal``.
    """
    chars = [c for c in text if not c.isspace()]
    if not chars:
        return "legal"
    share = sum(1 for c in chars if _ARABIC_BLOCK_RE.match(c)) / len(chars)
    if share > 0.8:
        return "arabic_primary"
    if share > 0.3:
        return "bilingual"
    if share > 0.1:
        return "administrative"
    return "legal"


class LanguageDetector:
    """Classifies text as Arabic, French or mixed.

    Args:
        arabic_threshold: Ratio above which text is Arabic.
        french_threshold: Ratio below which text is French.
    """

    def __init__(
        self, arabic_threshold: float = 0.9, french_threshold: float = 0.1
    ) -> None:
        if not 0.0 <= french_threshold <= arabic_threshold <= 1.0:
            raise ValueError(
                "Thresholds must satisfy 0 <= french_threshold <= arabic_threshold <= 1"
            )
        self.arabic_threshold = arabic_threshold
        self.french_threshold = french_threshold

    def classify(self, ratio: float) -> Language:
        """Map an Arabic ratio to a language class."""
        if ratio > self.arabic_threshold:
            return Language.ARABIC
        if ratio < self.french_threshold:
            return Language.FRENCH
        return Language.MIXED

    def detect(self, text: str) -> LanguageReport:
        """Classify a text and collect its language statistics.

        Args:
            text: Text to classify. Empty text is reported as French.

        Returns:
            Language report for the text.
        """
        arabic = count_arabic(text)
        latin = count_latin(text)
        total = arabic + latin
        ratio = arabic / total if total else 0.0
        language = self.classify(ratio)
        preprocessing, display, tesseract_lang, direction = _LABELS[language]

        logger.debug(
            "Language %s (arabic=%d, latin=%d, ratio=%.3f)",
            language.value,
            arabic,
            latin,
            ratio,
        )
        return LanguageReport(
            language=language,
            arabic_ratio=ratio,
            arabic_chars=arabic,
            latin_chars=latin,
            french_words=len(FRENCH_WORD_RE.findall(text)),
            meaningful_chars=sum(1 for c in text if c.isalnum()),
            preprocessing=preprocessing,
            display_label=display,
            tesseract_lang=tesseract_lang,
            direction=direction,
        )
