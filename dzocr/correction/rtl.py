"""Heuristic repair of Arabic lines emitted in visual (reversed) order.

Some PDF text layers and OCR passes return Arabic lines with their word
order reversed. Word order is restored only for lines that are purely
Arabic, and only when a strong signal is present: a line cannot end on a
preposition or a document formula such as ``المؤرخ``, and ``رقم`` always
precedes its number.
"""

import re

from dzocr.utils.logger import get_logger

from .rules import AR, DIGIT, StageResult

logger = get_logger(__name__)

FUNCTION_WORDS = frozenset(
    {"في", "إن", "أن", "من", "إلى", "على", "عن", "مع", "بعد", "قبل", "حول", "ضد"}
)
DOCUMENT_STARTERS = frozenset({"المؤرخ", "الموافق", "المتضمن", "المعدل", "المتمم"})
SENTENCE_END_MARKS = (".", "…", "،", "؛", ")", "]")
STATE_HEADER = ("الجمهورية", "الجزائرية", "الديمقراطية", "الشعبية")

_ARABIC_RE = re.compile(f"[{AR}]")
_LATIN_RE = re.compile("[A-Za-zÀ-ÿ]")
_NUMBER_BEFORE_RAQM_RE = re.compile(
    f"(?<![{AR}0-9٠-٩/-])({DIGIT}+(?:[-/]{DIGIT}+)*)\\s+(رقم)(?![{AR}])"
)
_PUNCT = ".,:;!?،؛()[]«»\"'…"


def _bare(token: str) -> str:
    return token.strip(_PUNCT)


def is_reversed_line(tokens: list[str]) -> bool:
    """Decide whether a tokenized Arabic line reads in reversed order.

    Args:
        tokens: Whitespace-separated tokens of one line.

    Returns:
        True when the line starts like a sentence end or ends like a
        sentence start.
    """
    first, last = _bare(tokens[0]), _bare(tokens[-1])
    if first in FUNCTION_WORDS or first in DOCUMENT_STARTERS:
        return False
    if last in FUNCTION_WORDS or last in DOCUMENT_STARTERS:
        return True
    return tokens[0].endswith(SENTENCE_END_MARKS) and not tokens[-1].endswith(
        SENTENCE_END_MARKS
    )


def _fix_state_header(tokens: list[str]) -> list[str] | None:
    bare = [_bare(t) for t in tokens]
    if sorted(bare) == sorted(STATE_HEADER) and bare != list(STATE_HEADER):
        return list(STATE_HEADER)
    return None


def fix_line(line: str) -> str:
    """Restore logical word order on a single line when needed.

    Lines containing Latin letters, lines without Arabic letters and
    lines of fewer than three words are returned unchanged.
    """
    if _LATIN_RE.search(line) or not _ARABIC_RE.search(line):
        return line
    tokens = line.split()
    if len(tokens) < 3:
        return line

    header = _fix_state_header(tokens)
    if header is not None:
        return " ".join(header)

    if is_reversed_line(tokens):
        return " ".join(reversed(tokens))

    return _NUMBER_BEFORE_RAQM_RE.sub(r"\2 \1", line)


def correct_rtl_order(text: str) -> StageResult:
    """Apply the reversed-line heuristics to every line of a text.

    Args:
        text: Corrected Arabic or bilingual text.

    Returns:
        Text with restored word order and the number of lines changed.
    """
    lines = text.split("\n")
    fixed = [fix_line(line) for line in lines]
    count = sum(1 for before, after in zip(lines, fixed) if before != after)

    if count:
        logger.debug("Restored word order on %d line(s)", count)
    applied = [f"RTL word order restored (x{count} lines)"] if count else []
    return StageResult("\n".join(fixed), count, applied)
