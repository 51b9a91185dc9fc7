"""Tests for OCR engine and layout analysis."""

from unittest.mock import MagicMock, patch

import numpy as np
import pytesseract
import pytest

from dzocr.ocr.layout_analyzer import LayoutAnalyzer
from dzocr.ocr.tesseract_engine import (
    ARABIC_VARIABLES,
    PROFILES,
    BoundingBox,
    OCRProfile,
    OCRWord,
    TesseractEngine,
)


def _make_ocr_word(
    text: str = "hello",
    x: int = 10,
    y: int = 10,
    width: int = 50,
    height: int = 20,
    confidence: float = 0.9,
    block_num: int = 1,
    line_num: int = 1,
    word_num: int = 1,
) -> OCRWord:
    """Create a test OCRWord with defaults."""
    return OCRWord(
        text=text,
        bbox=BoundingBox(x=x, y=y, width=width, height=height),
        confidence=confidence,
        block_num=block_num,
        line_num=line_num,
        word_num=word_num,
    )


def _mock_tesseract_data() -> dict:
    """Create mock pytesseract output data."""
    return {
        "text": ["", "Décret", "exécutif", "", "مرسوم"],
        "conf": ["-1", "95", 88, "-1", 72.0],
        "left": [0, 10, 70, 0, 10],
        "top": [0, 10, 10, 0, 50],
        "width": [0, 50, 50, 0, 40],
        "height": [0, 20, 20, 0, 20],
        "block_num": [0, 1, 1, 0, 2],
        "line_num": [0, 1, 1, 0, 1],
        "word_num": [0, 1, 2, 0, 1],
    }


class TestBoundingBox:
    """Tests for the BoundingBox data class."""

    def test_edges(self) -> None:
        bbox = BoundingBox(x=10, y=20, width=100, height=50)
        assert bbox.right == 110
        assert bbox.bottom == 70


class TestOCRProfile:
    """Tests for Tesseract profile settings."""

    def test_plain_config(self) -> None:
        assert OCRProfile(psm=6, oem=3).to_config() == "--psm 6 --oem 3"

    def test_variables_in_config(self) -> None:
        profile = OCRProfile(psm=3, oem=1, variables={"load_system_dawg": "0"})
        assert profile.to_config() == "--psm 3 --oem 1 -c load_system_dawg=0"

    def test_known_profiles(self) -> None:
        assert set(PROFILES) == {"legal", "administrative", "bilingual", "arabic_primary"}
        assert PROFILES["arabic_primary"].languages == "ara"
        assert PROFILES["bilingual"].variables == ARABIC_VARIABLES
        assert PROFILES["legal"].variables == {}


class TestTesseractEngine:
    """Tests for the TesseractEngine class (mocked)."""

    @patch("dzocr.ocr.tesseract_engine.pytesseract")
    def test_extract_text(self, mock_pytesseract: MagicMock) -> None:
        mock_pytesseract.image_to_string.return_value = "Décret exécutif\nمرسوم"
        mock_pytesseract.image_to_data.return_value = _mock_tesseract_data()

        engine = TesseractEngine()
        result = engine.extract_text(np.zeros((100, 200), dtype=np.uint8))

        assert result.text == "Décret exécutif\nمرسوم"
        assert [w.text for w in result.words] == ["Décret", "exécutif", "مرسوم"]
        assert result.confidence == pytest.approx(0.85)
        assert result.language == "ara+fra"
        assert result.profile == "bilingual"
        assert result.words[2].block_num == 2

        config = mock_pytesseract.image_to_string.call_args.kwargs["config"]
        assert config.startswith("--psm 3 --oem 1")
        assert "-c preserve_interword_spaces=1" in config

    @patch("dzocr.ocr.tesseract_engine.pytesseract")
    def test_profile_language(self, mock_pytesseract: MagicMock) -> None:
        mock_pytesseract.image_to_string.return_value = ""
        mock_pytesseract.image_to_data.return_value = _mock_tesseract_data()

        engine = TesseractEngine()
        result = engine.extract_text(np.zeros((50, 50), dtype=np.uint8), profile="arabic_primary")
        assert result.language == "ara"

        result = engine.extract_text(
            np.zeros((50, 50), dtype=np.uint8), lang="fra", profile="legal"
        )
        assert result.language == "fra"
        assert mock_pytesseract.image_to_data.call_args.kwargs["config"] == "--psm 6 --oem 3"

    @patch("dzocr.ocr.tesseract_engine.pytesseract")
    def test_no_words(self, mock_pytesseract: MagicMock) -> None:
        mock_pytesseract.image_to_string.return_value = ""
        mock_pytesseract.image_to_data.return_value = {
            key: [] for key in _mock_tesseract_data()
        }

        result = TesseractEngine().extract_text(np.zeros((50, 50), dtype=np.uint8))
        assert result.words == []
        assert result.confidence == 0.0

    def test_unknown_profile(self) -> None:
        with pytest.raises(ValueError, match="Unknown OCR profile"):
            TesseractEngine().extract_text(np.zeros((50, 50), dtype=np.uint8), profile="fast")

    @patch("dzocr.ocr.tesseract_engine.pytesseract")
    def test_custom_tesseract_cmd(self, mock_pytesseract: MagicMock) -> None:
        TesseractEngine(tesseract_cmd="/opt/tesseract/bin/tesseract")
        assert mock_pytesseract.pytesseract.tesseract_cmd == "/opt/tesseract/bin/tesseract"

    @patch("dzocr.ocr.tesseract_engine.pytesseract")
    def test_detect_script(self, mock_pytesseract: MagicMock) -> None:
        engine = TesseractEngine()
        image = np.zeros((50, 50), dtype=np.uint8)

        mock_pytesseract.image_to_osd.return_value = {"script": "Arabic"}
        assert engine.detect_script(image) == "ara"

        mock_pytesseract.image_to_osd.return_value = {"script": "Latin"}
        assert engine.detect_script(image) == "fra"

        mock_pytesseract.image_to_osd.return_value = {"script": "Cyrillic"}
        assert engine.detect_script(image) == "ara+fra"

    @patch("dzocr.ocr.tesseract_engine.pytesseract")
    def test_detect_script_failure(self, mock_pytesseract: MagicMock) -> None:
        mock_pytesseract.TesseractError = pytesseract.TesseractError
        mock_pytesseract.image_to_osd.side_effect = pytesseract.TesseractError(
            1, "Too few characters"
        )
        engine = TesseractEngine(default_lang="fra")
        assert engine.detect_script(np.zeros((50, 50), dtype=np.uint8)) == "fra"


class TestLayoutAnalyzer:
    """Tests for the LayoutAnalyzer class."""

    def setup_method(self) -> None:
        self.analyzer = LayoutAnalyzer()

    def test_empty_words(self) -> None:
        assert self.analyzer.analyze([], 1000, 1000) == []

    def test_block_types(self) -> None:
        words = [
            _make_ocr_word("RÉPUBLIQUE", x=100, y=20, width=800, block_num=1),
            _make_ocr_word("Article", x=100, y=300, width=80, block_num=2, word_num=1),
            _make_ocr_word("1er", x=190, y=300, width=40, block_num=2, word_num=2),
            _make_ocr_word("Vu", x=100, y=600, width=40, block_num=3),
        ]
        blocks = self.analyzer.analyze(words, 1000, 1000)
        assert [b.block_type for b in blocks] == ["header", "article", "paragraph"]
        assert blocks[1].text == "Article 1er"

    def test_table_block(self) -> None:
        words = []
        for line in range(1, 4):
            y = 400 + line * 30
            words.append(_make_ocr_word("Wilaya", x=100, y=y, line_num=line, word_num=1))
            words.append(_make_ocr_word("16", x=400, y=y, line_num=line, word_num=2))
        blocks = self.analyzer.analyze(words, 1000, 1000)
        assert blocks[0].block_type == "table"

    def test_block_text_order(self) -> None:
        words = [
            _make_ocr_word("second", word_num=2, line_num=1, y=300),
            _make_ocr_word("first", word_num=1, line_num=1, y=300),
            _make_ocr_word("next", word_num=1, line_num=2, y=330),
        ]
        block = self.analyzer.analyze(words, 1000, 1000)[0]
        assert block.text == "first second\nnext"
        assert block.bbox.y == 300
        assert block.bbox.bottom == 350

    def test_block_language(self) -> None:
        words = [
            _make_ocr_word("المادة", y=300, block_num=1, word_num=1),
            _make_ocr_word("الأولى", y=300, block_num=1, word_num=2),
        ]
        block = self.analyzer.analyze(words, 1000, 1000)[0]
        assert block.language == "ar"
        assert block.direction == "rtl"
        assert block.block_type == "article"

    def test_confidence_average(self) -> None:
        words = [
            _make_ocr_word("a", confidence=0.8, y=300, word_num=1),
            _make_ocr_word("b", confidence=0.6, y=300, word_num=2),
        ]
        block = self.analyzer.analyze(words, 1000, 1000)[0]
        assert block.confidence == pytest.approx(0.7)

    def test_arabic_columns_right_first(self) -> None:
        words = [
            _make_ocr_word("قرار", x=50, y=200, width=400, block_num=1),
            _make_ocr_word("مرسوم", x=550, y=300, width=400, block_num=2),
        ]
        blocks = self.analyzer.analyze(words, 1000, 1000)
        assert [b.column for b in blocks] == ["right", "left"]

    def test_french_columns_left_first(self) -> None:
        words = [
            _make_ocr_word("Décret", x=550, y=200, width=400, block_num=1),
            _make_ocr_word("Arrêté", x=50, y=300, width=400, block_num=2),
        ]
        blocks = self.analyzer.analyze(words, 1000, 1000)
        assert [b.column for b in blocks] == ["left", "right"]

    def test_full_width_block_separates_columns(self) -> None:
        words = [
            _make_ocr_word("Décret", x=550, y=200, width=400, block_num=1),
            _make_ocr_word("Arrêté", x=50, y=200, width=400, block_num=2),
            _make_ocr_word("Sommaire", x=50, y=500, width=900, block_num=3),
            _make_ocr_word("Loi", x=50, y=600, width=400, block_num=4),
        ]
        blocks = self.analyzer.analyze(words, 1000, 1000)
        assert [b.text for b in blocks] == ["Arrêté", "Décret", "Sommaire", "Loi"]
        assert blocks[2].column == "full"
