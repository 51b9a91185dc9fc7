"""Multi-stage OCR text correction for French/Arabic legal documents.

Runs the correction stages in a fixed order and reports what each one
changed, together with the language of the corrected text.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path

from dzocr.language.detector import LanguageDetector, LanguageReport, arabic_ratio
from dzocr.utils.config import CorrectionConfig, LanguageConfig
from dzocr.utils.logger import get_logger

from .legal_terms import correct_legal_terms, default_legal_rules
from .ligatures import fix_ligatures
from .markers import normalize_spaces, strip_direction_marks
from .rtl import correct_rtl_order
from .rules import CorrectionRule, load_rule_file
from .separation import default_separation_rules, separate_words

logger = get_logger(__name__)

_INLINE_SPACES_RE = re.compile(r"[ \f\v]{2,}")
_BLANK_LINES_RE = re.compile(r"\n{3,}")


@dataclass
class CorrectionResult:
    """Outcome of correcting one text."""

    original_text: str
    corrected_text: str
    language: LanguageReport
    corrections: list[str] = field(default_factory=list)
    markers_removed: int = 0
    ligatures_fixed: int = 0
    words_separated: int = 0
    legal_fixes: int = 0
    rtl_lines_fixed: int = 0

    @property
    def rtl_fixed(self) -> bool:
        return self.rtl_lines_fixed > 0

    @property
    def total_corrections(self) -> int:
        return (
            self.markers_removed
            + self.ligatures_fixed
            + self.words_separated
            + self.legal_fixes
            + self.rtl_lines_fixed
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "corrected_text": self.corrected_text,
            "corrections": list(self.corrections),
            "markers_removed": self.markers_removed,
            "ligatures_fixed": self.ligatures_fixed,
            "words_separated": self.words_separated,
            "legal_fixes": self.legal_fixes,
            "rtl_fixed": self.rtl_fixed,
            "rtl_lines_fixed": self.rtl_lines_fixed,
            "total_corrections": self.total_corrections,
            "language": self.language.to_dict(),
        }


def normalize_whitespace(text: str) -> str:
    """Collapse spaces inside lines while keeping the line structure.

    Args:
        text: Text to clean.

    Returns:
        Text with single spaces, stripped lines and at most one blank
        line between paragraphs.
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    lines = [_INLINE_SPACES_RE.sub(" ", line).strip() for line in text.split("\n")]
    return _BLANK_LINES_RE.sub("\n\n", "\n".join(lines)).strip()


class TextCorrector:
    """Configurable OCR text correction pipeline.

    Stage order: invisible marks, special spaces, ligatures, word
    separation, legal vocabulary, RTL word order, whitespace. The three
    Arabic stages are skipped for text that is almost entirely Latin.

    Args:
        config: Stage switches and rule file location.
        language_config: Thresholds for the final language report.
    """

    def __init__(
        self,
        config: CorrectionConfig | None = None,
        language_config: LanguageConfig | None = None,
    ) -> None:
        self.config = config or CorrectionConfig()
        language_config = language_config or LanguageConfig()
        self.detector = LanguageDetector(
            arabic_threshold=language_config.arabic_threshold,
            french_threshold=language_config.french_threshold,
        )

        rule_sets = load_rule_file(Path(self.config.rules_path))
        self.separation_rules: list[CorrectionRule] = rule_sets.get(
            "word_separation", default_separation_rules()
        )
        self.legal_rules: list[CorrectionRule] = rule_sets.get(
            "legal_terms", default_legal_rules()
        )

    def correct(self, text: str) -> CorrectionResult:
        """Run all enabled correction stages on a text.

        Args:
            text: Raw OCR text. May be empty.

        Returns:
            Corrected text with per-stage counts and its language report.
        """
        if not text or not text.strip():
            return CorrectionResult(
                original_text=text or "",
                corrected_text="",
                language=self.detector.detect(""),
            )

        result = CorrectionResult(
            original_text=text, corrected_text=text, language=self.detector.detect("")
        )
        current = text
        cfg = self.config

        if cfg.remove_markers:
            stage = strip_direction_marks(current)
            current = stage.text
            result.markers_removed += stage.count
            result.corrections.extend(stage.applied)

        if cfg.normalize_spaces:
            stage = normalize_spaces(current)
            current = stage.text
            result.markers_removed += stage.count
            result.corrections.extend(stage.applied)

        if cfg.fix_ligatures:
            stage = fix_ligatures(current)
            current = stage.text
            result.ligatures_fixed = stage.count
            result.corrections.extend(stage.applied)

        ratio = arabic_ratio(current)
        if ratio > cfg.arabic_gate_ratio:
            if cfg.separate_words:
                stage = separate_words(current, self.separation_rules)
                current = stage.text
                result.words_separated = stage.count
                result.corrections.extend(stage.applied)

            if cfg.legal_terms:
                stage = correct_legal_terms(current, self.legal_rules)
                current = stage.text
                result.legal_fixes = stage.count
                result.corrections.extend(stage.applied)

            if cfg.fix_rtl:
                stage = correct_rtl_order(current)
                current = stage.text
                result.rtl_lines_fixed = stage.count
                result.corrections.extend(stage.applied)
        else:
            logger.debug(
                "Arabic ratio %.3f below %.2f, skipping Arabic stages",
                ratio,
                cfg.arabic_gate_ratio,
            )

        result.corrected_text = normalize_whitespace(current)
        result.language = self.detector.detect(result.corrected_text)

        logger.info(
            "Correction: %d changes (marks=%d, ligatures=%d, separated=%d, "
            "legal=%d, rtl=%d), language=%s",
            result.total_corrections,
            result.markers_removed,
            result.ligatures_fixed,
            result.words_separated,
            result.legal_fixes,
            result.rtl_lines_fixed,
            result.language.language.value,
        )
        return result
