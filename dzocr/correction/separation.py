"""Splitting of Arabic words glued together by OCR.

Arabic OCR frequently drops the space between a word and ``رقم``,
between fixed legal phrases, and around numbers. The cascade below
restores those boundaries in a fixed order: specific collisions first,
generic letter/digit boundaries last.
"""

import re

from dzocr.utils.logger import get_logger

from .rules import AR, DIGIT, CorrectionRule, StageResult, apply_rules

logger = get_logger(__name__)

NUMBER_ADJECTIVES = (
    "رئاسي",
    "تنفيذي",
    "وزاري",
    "برلماني",
    "بلدي",
    "قضائي",
    "إداري",
    "قانوني",
    "تشريعي",
)

NUMBERED_NOUNS = ("الجمهورية", "الحكومة", "الوزارة", "المرسوم", "القانون", "القرار")

ACT_TYPES = ("مرسوم", "قرار", "قانون", "أمر")

SECTION_MARKERS = ("المادة", "الفصل", "الباب", "الفقرة", "البند", "النقطة")

# Phrases whose inner space OCR tends to drop.
JOINED_PHRASES = (
    "الجمهورية الجزائرية",
    "الديمقراطية الشعبية",
    "الجريدة الرسمية",
    "وزير العدل",
    "وزير الداخلية",
    "وزير المالية",
    "وزير الدفاع",
    "وزير الخارجية",
    "وزير التعليم",
    "وزير الصحة",
    "وزير العمل",
    "وزير التجارة",
    "وزير الثقافة",
    "وزير البيئة",
    "وزير النقل",
    "الإدارة العامة",
    "المديرية العامة",
    "الأمانة العامة",
    "المدير العام",
    "رئيس المجلس",
    "الأمين العام",
    "المحافظ السامي",
    "الكاتب العام",
    "النائب العام",
    "في تطبيق",
    "بناء على",
    "وفق الأحكام",
    "طبقا للقانون",
    "استنادا إلى",
    "بالإشارة إلى",
    "وعلى ضوء",
    "بعد اطلاع",
    "ومراعاة لأحكام",
)


def _alternation(words: tuple[str, ...]) -> str:
    return "|".join(re.escape(w) for w in words)


def default_separation_rules() -> list[CorrectionRule]:
    """Build the built-in word separation cascade."""
    rules = [
        CorrectionRule.compile(
            f"({_alternation(NUMBER_ADJECTIVES)})(رقم)",
            r"\1 \2",
            "adjective glued to رقم",
        ),
        CorrectionRule.compile(
            f"({_alternation(NUMBERED_NOUNS)})(رقم)",
            r"\1 \2",
            "institution glued to رقم",
        ),
        CorrectionRule.compile(
            f"(?<![{AR}])({_alternation(ACT_TYPES)})(رقم)",
            r"\1 \2",
            "act type glued to رقم",
        ),
        CorrectionRule.compile("(المؤرخ)(في)", r"\1 \2", "المؤرخ في split"),
        CorrectionRule.compile(
            f"الموافق\\s*لـ?\\s*({DIGIT})",
            r"الموافق لـ \1",
            "الموافق لـ glued to number",
        ),
        CorrectionRule.compile(
            f"(الموافق)(لـ?)(?![{AR}])", r"\1 \2", "الموافق لـ split"
        ),
        CorrectionRule.compile(
            f"({_alternation(SECTION_MARKERS)})({DIGIT}+)",
            r"\1 \2",
            "section marker glued to number",
        ),
    ]

    for phrase in JOINED_PHRASES:
        first, _, rest = phrase.partition(" ")
        rules.append(
            CorrectionRule.compile(
                f"{re.escape(first)}{re.escape(rest)}",
                f"{first} {rest}",
                f"joined phrase '{phrase}'",
            )
        )

    rules.extend(
        [
            CorrectionRule.compile(
                f"([{AR}]{{2,}})({DIGIT}+)([{AR}]{{2,}})",
                r"\1 \2 \3",
                "number inside Arabic words",
            ),
            CorrectionRule.compile(
                f"({DIGIT}+)([{AR}]{{2,}})", r"\1 \2", "number before Arabic word"
            ),
            CorrectionRule.compile(
                f"([{AR}]{{2,}})({DIGIT}+)", r"\1 \2", "Arabic word before number"
            ),
        ]
    )
    return rules


def separate_words(
    text: str, rules: list[CorrectionRule] | None = None
) -> StageResult:
    """Insert missing spaces between glued Arabic words and numbers.

    Args:
        text: Text with folded ligatures.
        rules: Separation cascade. Defaults to the built-in rules.

    Returns:
        Separated text and the number of boundaries restored.
    """
    result = apply_rules(text, rules if rules is not None else default_separation_rules())
    if result.count:
        logger.debug("Separated %d glued words", result.count)
    return result
