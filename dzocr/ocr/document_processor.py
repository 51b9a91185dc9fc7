"""End-to-end OCR of a legal document.

Loads a PDF or image, then for every page runs preprocessing, Tesseract,
text correction and layout analysis. A page that Tesseract fails on is
recorded with its error and the remaining pages are still processed.
"""

import io
import time
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np
import pytesseract
from PIL import Image, ImageSequence

from dzocr.correction.pipeline import CorrectionResult, TextCorrector
from dzocr.language.detector import LanguageReport, select_ocr_profile
from dzocr.preprocessing.pipeline import PreprocessingPipeline, QualityMetrics
from dzocr.utils.config import AppConfig
from dzocr.utils.logger import get_logger

from .layout_analyzer import LayoutAnalyzer, TextBlock
from .pdf_handler import PDFHandler
from .tesseract_engine import OCRResult, TesseractEngine

logger = get_logger(__name__)

PAGE_SEPARATOR = "\n\n--- PAGE SUIVANTE ---\n\n"
IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".tif", ".tiff", ".bmp", ".webp"}
SUPPORTED_EXTENSIONS = IMAGE_EXTENSIONS | {".pdf"}


@dataclass
class PageResult:
    """OCR, correction and layout results for a single page."""

    page_number: int
    ocr_result: OCRResult | None
    correction: CorrectionResult | None
    text_blocks: list[TextBlock]
    quality_metrics: QualityMetrics | None
    profile: str
    error: str | None = None

    @property
    def text(self) -> str:
        return self.correction.corrected_text if self.correction else ""

    @property
    def raw_text(self) -> str:
        return self.ocr_result.text if self.ocr_result else ""


@dataclass
class DocumentResult:
    """Processing results for a whole document."""

    source_file: str
    page_count: int
    pages: list[PageResult]
    combined_text: str
    raw_text: str
    language: LanguageReport
    processing_time_ms: float = 0.0
    warnings: list[str] = field(default_factory=list)

    @property
    def failed_pages(self) -> list[int]:
        return [p.page_number for p in self.pages if p.error]

    @property
    def confidence(self) -> float:
        scored = [p.ocr_result.confidence for p in self.pages if p.ocr_result]
        return sum(scored) / len(scored) if scored else 0.0


class DocumentProcessor:
    """Runs the OCR pipeline over PDFs and page images.

    Args:
        config: Application configuration.
        corrector: Text corrector. Built from ``config`` when omitted.
    """

    def __init__(self, config: AppConfig, corrector: TextCorrector | None = None) -> None:
        self.config = config
        self.pdf_handler = PDFHandler(dpi=config.ocr.pdf_dpi, max_pages=config.ocr.max_pages)
        self.preprocessing = PreprocessingPipeline(config.preprocessing)
        self.ocr_engine = TesseractEngine(
            tesseract_cmd=config.ocr.tesseract_cmd,
            default_lang=config.ocr.languages,
        )
        self.corrector = corrector or TextCorrector(config.correction, config.language)
        self.layout_analyzer = LayoutAnalyzer(detector=self.corrector.detector)

    def process(self, source: Path | bytes, filename: str = "document") -> DocumentResult:
        """Process a document from a file path or bytes.

        Args:
            source: Path to a document file, or raw file bytes.
            filename: Display name for the source document.

        Returns:
            Per-page results with the corrected text of all pages.

        Raises:
            ValueError: If the file type is not supported.
            FileNotFoundError: If the path does not exist.
            RuntimeError: If a PDF cannot be rasterised.
        """
        start_time = time.time()
        logger.info("Processing document: %s", filename)
        images = self._load_images(source)

        pages: list[PageResult] = []
        profile = self.config.ocr.profile
        for number, image in enumerate(images, start=1):
            page = self._process_page(number, image, profile)
            pages.append(page)
            if self.config.ocr.auto_profile and page.raw_text.strip():
                profile = select_ocr_profile(page.raw_text)

        combined_text = PAGE_SEPARATOR.join(p.text for p in pages)
        raw_text = PAGE_SEPARATOR.join(p.raw_text for p in pages)
        language = self.corrector.detector.detect(combined_text)

        result = DocumentResult(
            source_file=filename,
            page_count=len(pages),
            pages=pages,
            combined_text=combined_text,
            raw_text=raw_text,
            language=language,
            processing_time_ms=(time.time() - start_time) * 1000,
            warnings=[f"OCR failed on page {p.page_number}: {p.error}" for p in pages if p.error],
        )
        logger.info(
            "Processed %d pages from %s (%s, %d failed)",
            result.page_count,
            filename,
            language.language.value,
            len(result.failed_pages),
        )
        return result

    def _process_page(self, number: int, image: np.ndarray, profile: str) -> PageResult:
        processed, metrics = self.preprocessing.process(image)
        try:
            ocr_result = self.ocr_engine.extract_text(processed, profile=profile)
        except pytesseract.TesseractError as exc:
            logger.warning("Tesseract failed on page %d: %s", number, exc)
            return PageResult(
                page_number=number,
                ocr_result=None,
                correction=None,
                text_blocks=[],
                quality_metrics=metrics,
                profile=profile,
                error=str(exc),
            )

        correction = self.corrector.correct(ocr_result.text)
        height, width = image.shape[:2]
        blocks = self.layout_analyzer.analyze(ocr_result.words, width, height)
        return PageResult(
            page_number=number,
            ocr_result=ocr_result,
            correction=correction,
            text_blocks=blocks,
            quality_metrics=metrics,
            profile=profile,
        )

    def _load_images(self, source: Path | bytes) -> list[np.ndarray]:
        """Load page images from a path or bytes (PDF, PNG, JPEG, TIFF...)."""
        if isinstance(source, bytes):
            if source[:4] == b"%PDF":
                return self.pdf_handler.pdf_to_images(source)
            return self._image_pages(Image.open(io.BytesIO(source)))

        path = Path(source)
        suffix = path.suffix.lower()
        if suffix not in SUPPORTED_EXTENSIONS:
            raise ValueError(f"Unsupported file type: {suffix or path.name}")
        if suffix == ".pdf":
            return self.pdf_handler.pdf_to_images(path)
        if not path.exists():
            raise FileNotFoundError(f"Document not found: {path}")
        with Image.open(path) as img:
            return self._image_pages(img)

    def _image_pages(self, img: Image.Image) -> list[np.ndarray]:
        """One array per frame, so multi-page TIFFs yield every page."""
        pages = [np.array(frame.convert("RGB")) for frame in ImageSequence.Iterator(img)]
        if self.config.ocr.max_pages is not None:
            pages = pages[: self.config.ocr.max_pages]
        return pages
