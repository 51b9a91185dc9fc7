"""Tests for PDF rasterisation and the document processor."""

import io
from pathlib import Path
from unittest.mock import MagicMock, patch

import numpy as np
import pytesseract
import pytest
from pdf2image.exceptions import PDFPageCountError
from PIL import Image

from dzocr.ocr.document_processor import PAGE_SEPARATOR, DocumentProcessor
from dzocr.ocr.pdf_handler import PDFHandler
from dzocr.ocr.tesseract_engine import BoundingBox, OCRResult, OCRWord
from dzocr.utils.config import AppConfig, CorrectionConfig, OCRConfig


def _mock_pil_image(width: int = 100, height: int = 100, mode: str = "RGB") -> Image.Image:
    """Create a real PIL image for testing."""
    if mode == "L":
        return Image.fromarray(np.full((height, width), 255, dtype=np.uint8))
    return Image.fromarray(np.full((height, width, 3), 255, dtype=np.uint8))


def _page_image() -> np.ndarray:
    image = np.full((200, 300, 3), 255, dtype=np.uint8)
    image[80:90, 40:260] = 0
    return image


def _png_bytes() -> bytes:
    buffer = io.BytesIO()
    Image.fromarray(_page_image()).save(buffer, format="PNG")
    return buffer.getvalue()


def _ocr_result(text: str, confidence: float = 0.9) -> OCRResult:
    words = [
        OCRWord(
            text=token,
            bbox=BoundingBox(x=20 + 60 * i, y=80, width=50, height=10),
            confidence=confidence,
            block_num=1,
            line_num=1,
            word_num=i + 1,
        )
        for i, token in enumerate(text.split())
    ]
    return OCRResult(text=text, words=words, language="ara+fra", confidence=confidence)


class TestPDFHandler:
    """Tests for the PDFHandler class."""

    @patch("dzocr.ocr.pdf_handler.convert_from_path")
    def test_pdf_to_images(self, mock_convert: MagicMock) -> None:
        mock_convert.return_value = [_mock_pil_image(), _mock_pil_image()]
        handler = PDFHandler(dpi=200)

        with patch.object(Path, "exists", return_value=True):
            images = handler.pdf_to_images(Path("/fake/doc.pdf"))

        assert len(images) == 2
        assert images[0].shape == (100, 100, 3)
        mock_convert.assert_called_once_with("/fake/doc.pdf", dpi=200)

    @patch("dzocr.ocr.pdf_handler.convert_from_path")
    def test_max_pages(self, mock_convert: MagicMock) -> None:
        mock_convert.return_value = [_mock_pil_image()]
        handler = PDFHandler(dpi=300, max_pages=3)

        with patch.object(Path, "exists", return_value=True):
            handler.pdf_to_images("/fake/doc.pdf")

        mock_convert.assert_called_once_with("/fake/doc.pdf", dpi=300, first_page=1, last_page=3)

    @patch("dzocr.ocr.pdf_handler.convert_from_bytes")
    def test_pdf_bytes(self, mock_convert: MagicMock) -> None:
        mock_convert.return_value = [_mock_pil_image(mode="L")]
        images = PDFHandler().pdf_to_images(b"%PDF-1.4 fake")

        assert images[0].shape == (100, 100, 3)
        mock_convert.assert_called_once_with(b"%PDF-1.4 fake", dpi=300)

    def test_file_not_found(self) -> None:
        with pytest.raises(FileNotFoundError):
            PDFHandler().pdf_to_images(Path("/nonexistent/doc.pdf"))

    @patch("dzocr.ocr.pdf_handler.convert_from_path")
    def test_conversion_error(self, mock_convert: MagicMock) -> None:
        mock_convert.side_effect = PDFPageCountError("Unable to get page count")

        with patch.object(Path, "exists", return_value=True):
            with pytest.raises(RuntimeError, match="PDF conversion failed"):
                PDFHandler().pdf_to_images(Path("/fake/doc.pdf"))

    def test_invalid_max_pages(self) -> None:
        with pytest.raises(ValueError, match="max_pages"):
            PDFHandler(max_pages=0)

    @patch("dzocr.ocr.pdf_handler.pdfinfo_from_path")
    def test_get_page_count(self, mock_info: MagicMock) -> None:
        mock_info.return_value = {"Pages": "5", "Title": "JO"}
        assert PDFHandler().get_page_count(Path("/fake/doc.pdf")) == 5
        mock_info.assert_called_once_with("/fake/doc.pdf")


class TestDocumentProcessor:
    """Tests for DocumentProcessor with OCR and PDF rendering mocked."""

    def _config(self, **ocr_options) -> AppConfig:
        return AppConfig(
            ocr=OCRConfig(**ocr_options),
            correction=CorrectionConfig(rules_path="/nonexistent.yaml"),
        )

    @patch("dzocr.ocr.document_processor.PDFHandler")
    @patch("dzocr.ocr.document_processor.TesseractEngine")
    def test_image_bytes(self, mock_engine_cls: MagicMock, mock_pdf_cls: MagicMock) -> None:
        mock_engine_cls.return_value.extract_text.return_value = _ocr_result(
            "مرسوم رئاسيرقم 20-45"
        )
        processor = DocumentProcessor(self._config())

        result = processor.process(_png_bytes(), filename="scan.png")

        assert result.source_file == "scan.png"
        assert result.page_count == 1
        assert result.combined_text == "مرسوم رئاسي رقم 20-45"
        assert result.raw_text == "مرسوم رئاسيرقم 20-45"
        assert result.pages[0].profile == "bilingual"
        assert result.pages[0].text_blocks[0].direction == "rtl"
        assert result.confidence == pytest.approx(0.9)
        assert result.warnings == []
        mock_pdf_cls.return_value.pdf_to_images.assert_not_called()

    @patch("dzocr.ocr.document_processor.PDFHandler")
    @patch("dzocr.ocr.document_processor.TesseractEngine")
    def test_pdf_bytes(self, mock_engine_cls: MagicMock, mock_pdf_cls: MagicMock) -> None:
        mock_pdf_cls.return_value.pdf_to_images.return_value = [_page_image(), _page_image()]
        mock_engine_cls.return_value.extract_text.side_effect = [
            _ocr_result("Décret exécutif n° 20-123"),
            _ocr_result("Article 1er"),
        ]
        processor = DocumentProcessor(self._config())

        result = processor.process(b"%PDF-1.4 fake", filename="jo.pdf")

        assert result.page_count == 2
        assert PAGE_SEPARATOR.strip() == "--- PAGE SUIVANTE ---"
        assert result.combined_text == (
            "Décret exécutif n° 20-123" + PAGE_SEPARATOR + "Article 1er"
        )
        mock_pdf_cls.return_value.pdf_to_images.assert_called_once_with(b"%PDF-1.4 fake")

    @patch("dzocr.ocr.document_processor.PDFHandler")
    @patch("dzocr.ocr.document_processor.TesseractEngine")
    def test_auto_profile_follows_previous_page(
        self, mock_engine_cls: MagicMock, mock_pdf_cls: MagicMock
    ) -> None:
        mock_pdf_cls.return_value.pdf_to_images.return_value = [_page_image(), _page_image()]
        engine = mock_engine_cls.return_value
        engine.extract_text.side_effect = [
            _ocr_result("مرسوم رئاسي المؤرخ"),
            _ocr_result("المادة الأولى"),
        ]
        processor = DocumentProcessor(self._config())

        result = processor.process(b"%PDF-1.4 fake")

        assert [p.profile for p in result.pages] == ["bilingual", "arabic_primary"]
        assert engine.extract_text.call_args_list[1].kwargs["profile"] == "arabic_primary"

    @patch("dzocr.ocr.document_processor.PDFHandler")
    @patch("dzocr.ocr.document_processor.TesseractEngine")
    def test_auto_profile_disabled(
        self, mock_engine_cls: MagicMock, mock_pdf_cls: MagicMock
    ) -> None:
        mock_pdf_cls.return_value.pdf_to_images.return_value = [_page_image(), _page_image()]
        mock_engine_cls.return_value.extract_text.side_effect = [
            _ocr_result("مرسوم رئاسي المؤرخ"),
            _ocr_result("المادة الأولى"),
        ]
        processor = DocumentProcessor(self._config(auto_profile=False, profile="legal"))

        result = processor.process(b"%PDF-1.4 fake")

        assert [p.profile for p in result.pages] == ["legal", "legal"]

    @patch("dzocr.ocr.document_processor.PDFHandler")
    @patch("dzocr.ocr.document_processor.TesseractEngine")
    def test_failed_page_recorded(
        self, mock_engine_cls: MagicMock, mock_pdf_cls: MagicMock
    ) -> None:
        mock_pdf_cls.return_value.pdf_to_images.return_value = [_page_image(), _page_image()]
        mock_engine_cls.return_value.extract_text.side_effect = [
            pytesseract.TesseractError(1, "Image too small"),
            _ocr_result("Article 2", confidence=0.8),
        ]
        processor = DocumentProcessor(self._config())

        result = processor.process(b"%PDF-1.4 fake")

        assert result.page_count == 2
        assert result.failed_pages == [1]
        assert result.pages[0].text == ""
        assert result.pages[0].quality_metrics is not None
        assert result.pages[1].profile == "bilingual"
        assert result.warnings[0].startswith("OCR failed on page 1")
        assert result.confidence == pytest.approx(0.8)
        assert result.combined_text.endswith("Article 2")

    def test_unsupported_suffix(self) -> None:
        processor = DocumentProcessor(self._config())
        with pytest.raises(ValueError, match="Unsupported file type"):
            processor.process(Path("decision.docx"))

    def test_missing_image(self) -> None:
        processor = DocumentProcessor(self._config())
        with pytest.raises(FileNotFoundError):
            processor.process(Path("/nonexistent/scan.png"))

    @patch("dzocr.ocr.document_processor.TesseractEngine")
    def test_multi_page_tiff(self, mock_engine_cls: MagicMock, tmp_path: Path) -> None:
        mock_engine_cls.return_value.extract_text.return_value = _ocr_result("Vu la loi")
        frames = [Image.fromarray(_page_image()) for _ in range(3)]
        path = tmp_path / "scan.tiff"
        frames[0].save(path, save_all=True, append_images=frames[1:])

        assert DocumentProcessor(self._config()).process(path).page_count == 3
        assert DocumentProcessor(self._config(max_pages=2)).process(path).page_count == 2
