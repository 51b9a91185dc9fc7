"""OCR variant correction for Algerian official vocabulary.

Fixes the recurring misreadings of state, ministry and act names in the
Journal Officiel and brings decree/date formulas to a canonical spacing.
"""

from dzocr.utils.logger import get_logger

from .rules import AR, CorrectionRule, StageResult, apply_rules

logger = get_logger(__name__)

_NOT_AR_BEFORE = f"(?<![{AR}])"
_NOT_AR_AFTER = f"(?![{AR}])"

# (pattern, replacement, description)
_VARIANTS: list[tuple[str, str, str]] = [
    ("الجماورية|الجمحورية|الجماهورية", "الجمهورية", "الجمهورية"),
    ("الدبمقراطية|الديموقراطية|الديمقراضية", "الديمقراطية", "الديمقراطية"),
    (f"الشعبيه{_NOT_AR_AFTER}|الشعبيبة", "الشعبية", "الشعبية"),
    ("الجزأيرية|الجزاءرية|الجزايرية", "الجزائرية", "الجزائرية"),
    (r"(?:رئبس|رءيس|رئيص)\s*الجمهورية", "رئيس الجمهورية", "رئيس الجمهورية"),
    (r"(?:الوزبر|الوذير|الوزيز)\s*الأول", "الوزير الأول", "الوزير الأول"),
    (
        r"(?:وزبر|وذير|وزيز)\s*(العدل|الداخلية|المالية|الدفاع)",
        r"وزير \1",
        "وزير + ministry",
    ),
    (r"(?:المؤرح|المؤرة)\s*في", "المؤرخ في", "المؤرخ في"),
    (f"(?:الموافن|الموافه){_NOT_AR_AFTER}", "الموافق", "الموافق"),
    (r"(?:مرسوم|مرصوم|مرسمو)\s*(?:رئاسي|رءاسي)", "مرسوم رئاسي", "مرسوم رئاسي"),
    (r"(?:مرسوم|مرصوم|مرسمو)\s*(?:تنفيذي|تنفيدي)", "مرسوم تنفيذي", "مرسوم تنفيذي"),
    (r"(?:قرار|قزار|قرءر)\s*(?:وزاري|وذاري)", "قرار وزاري", "قرار وزاري"),
    (
        r"(?:الجريدة|الجزيدة|الجريده)\s*(?:الرسمية|الرصمية)",
        "الجريدة الرسمية",
        "الجريدة الرسمية",
    ),
    (f"{_NOT_AR_BEFORE}(?:ولايه|ولايت){_NOT_AR_AFTER}", "ولاية", "ولاية"),
    (f"{_NOT_AR_BEFORE}(?:دايرة|دأيرة){_NOT_AR_AFTER}", "دائرة", "دائرة"),
    (f"{_NOT_AR_BEFORE}(?:بلديه|بلديت){_NOT_AR_AFTER}", "بلدية", "بلدية"),
]

_CANONICAL: list[tuple[str, str, str]] = [
    (r"مرسوم\s*رئاسي\s*رقم", "مرسوم رئاسي رقم", "canonical مرسوم رئاسي رقم"),
    (r"مرسوم\s*تنفيذي\s*رقم", "مرسوم تنفيذي رقم", "canonical مرسوم تنفيذي رقم"),
    (r"المؤرخ\s*في", "المؤرخ في", "canonical المؤرخ في"),
    (f"الموافق\\s*لـ?{_NOT_AR_AFTER}", "الموافق لـ", "canonical الموافق لـ"),
]


def default_legal_rules() -> list[CorrectionRule]:
    """Build the built-in variant fixes followed by canonical formulas."""
    return [
        CorrectionRule.compile(pattern, replacement, f"legal term: {description}")
        for pattern, replacement, description in _VARIANTS + _CANONICAL
    ]


def correct_legal_terms(
    text: str, rules: list[CorrectionRule] | None = None
) -> StageResult:
    """Fix OCR misreadings of official vocabulary.

    Args:
        text: Text after word separation.
        rules: Substitutions to apply. Defaults to the built-in rules.

    Returns:
        Corrected text and the number of terms changed.
    """
    result = apply_rules(text, rules if rules is not None else default_legal_rules())
    if result.count:
        logger.debug("Corrected %d legal terms", result.count)
    return result
