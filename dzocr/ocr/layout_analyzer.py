"""Layout analysis for Journal Officiel pages.

Groups OCR words into blocks, then tags each block with its role
(header, article, table, paragraph), its language and reading direction,
and the column it sits in. Two-column Arabic pages read right column
first.
"""

import re
from dataclasses import dataclass

from dzocr.language.detector import Language, LanguageDetector
from dzocr.utils.logger import get_logger

from .tesseract_engine import BoundingBox, OCRWord

logger = get_logger(__name__)

ARTICLE_START_RE = re.compile(r"^\s*(?:article|art\.|المادة|مادة)\s", re.IGNORECASE)
FULL_WIDTH_RATIO = 0.6


@dataclass
class TextBlock:
    """A classified region of text on a page."""

    block_type: str
    bbox: BoundingBox
    words: list[OCRWord]
    confidence: float
    text: str = ""
    language: str = Language.FRENCH.value
    direction: str = "ltr"
    column: str = "full"


class LayoutAnalyzer:
    """Turns positioned OCR words into ordered, classified blocks.

    Args:
        header_ratio: Fraction of the page height treated as the header band.
        detector: Language detector used per block.
    """

    def __init__(
        self,
        header_ratio: float = 0.15,
        detector: LanguageDetector | None = None,
    ) -> None:
        self.header_ratio = header_ratio
        self.detector = detector or LanguageDetector()

    def analyze(
        self, words: list[OCRWord], image_width: int, image_height: int
    ) -> list[TextBlock]:
        """Group words into blocks in reading order.

        Args:
            words: OCR word detections.
            image_width: Page width in pixels.
            image_height: Page height in pixels.

        Returns:
            Classified blocks, full-width blocks and columns ordered for
            reading.
        """
        if not words:
            return []

        groups: dict[int, list[OCRWord]] = {}
        for word in words:
            groups.setdefault(word.block_num, []).append(word)

        blocks = [
            self._build_block(block_words, image_width, image_height)
            for block_words in groups.values()
        ]
        blocks = self._reading_order(blocks)
        logger.info("Detected %d text blocks", len(blocks))
        return blocks

    def _build_block(
        self, words: list[OCRWord], image_width: int, image_height: int
    ) -> TextBlock:
        bbox = self._calculate_block_bbox(words)
        text = self._block_text(words)
        report = self.detector.detect(text)
        return TextBlock(
            block_type=self._classify_block(words, text, bbox, image_height),
            bbox=bbox,
            words=words,
            confidence=sum(w.confidence for w in words) / len(words),
            text=text,
            language=report.language.value,
            direction=report.direction,
            column=self._column(bbox, image_width),
        )

    @staticmethod
    def _block_text(words: list[OCRWord]) -> str:
        lines: dict[int, list[OCRWord]] = {}
        for word in words:
            lines.setdefault(word.line_num, []).append(word)
        return "\n".join(
            " ".join(w.text for w in sorted(line, key=lambda w: w.word_num))
            for _, line in sorted(lines.items())
        )

    @staticmethod
    def _calculate_block_bbox(words: list[OCRWord]) -> BoundingBox:
        x_min = min(w.bbox.x for w in words)
        y_min = min(w.bbox.y for w in words)
        x_max = max(w.bbox.right for w in words)
        y_max = max(w.bbox.bottom for w in words)
        return BoundingBox(x_min, y_min, x_max - x_min, y_max - y_min)

    @staticmethod
    def _column(bbox: BoundingBox, image_width: int) -> str:
        if image_width <= 0 or bbox.width >= image_width * FULL_WIDTH_RATIO:
            return "full"
        return "right" if bbox.x + bbox.width / 2 > image_width / 2 else "left"

    def _classify_block(
        self,
        words: list[OCRWord],
        text: str,
        bbox: BoundingBox,
        image_height: int,
    ) -> str:
        """Block type: ``header``, ``article``, ``table`` or ``paragraph``."""
        if bbox.y < image_height * self.header_ratio:
            return "header"
        if ARTICLE_START_RE.match(text):
            return "article"
        if self._is_table_like(words):
            return "table"
        return "paragraph"

    @staticmethod
    def _is_table_like(words: list[OCRWord]) -> bool:
        """Several lines whose words start at the same x offsets."""
        lines: dict[int, list[int]] = {}
        for word in words:
            lines.setdefault(word.line_num, []).append(word.bbox.x)
        if len(lines) < 3:
            return False

        starts = [sorted(xs) for xs in lines.values() if len(xs) >= 2]
        if len(starts) < 3:
            return False
        # columns line up within a few pixels on every row
        tolerance = 10
        reference = starts[0]
        aligned = sum(
            1
            for row in starts[1:]
            if len(row) == len(reference)
            and all(abs(a - b) <= tolerance for a, b in zip(row, reference))
        )
        return aligned >= len(starts) - 1

    @staticmethod
    def _reading_order(blocks: list[TextBlock]) -> list[TextBlock]:
        """Top-down, with the right column first on mostly-Arabic pages."""
        arabic = sum(1 for b in blocks if b.direction == "rtl")
        first, second = ("right", "left") if arabic * 2 > len(blocks) else ("left", "right")
        rank = {"full": 0, first: 1, second: 2}

        full = sorted((b for b in blocks if b.column == "full"), key=lambda b: b.bbox.y)
        if not full:
            return sorted(blocks, key=lambda b: (rank[b.column], b.bbox.y))

        # columns between two full-width blocks are read before the next one
        ordered: list[TextBlock] = []
        remaining = [b for b in blocks if b.column != "full"]
        for anchor in full:
            above = [b for b in remaining if b.bbox.y < anchor.bbox.y]
            ordered += sorted(above, key=lambda b: (rank[b.column], b.bbox.y))
            remaining = [b for b in remaining if b.bbox.y >= anchor.bbox.y]
            ordered.append(anchor)
        ordered += sorted(remaining, key=lambda b: (rank[b.column], b.bbox.y))
        return ordered
