"""PDF rasterisation for Journal Officiel issues and scanned acts."""

from pathlib import Path

import numpy as np
from pdf2image import convert_from_bytes, convert_from_path
from pdf2image.exceptions import PDFInfoNotInstalledError, PDFPageCountError, PDFSyntaxError
from pdf2image.pdf2image import pdfinfo_from_path

from dzocr.utils.logger import get_logger

logger = get_logger(__name__)

_CONVERSION_ERRORS = (PDFInfoNotInstalledError, PDFPageCountError, PDFSyntaxError, OSError)


class PDFHandler:
    """Converts PDF pages to images for OCR.

    Args:
        dpi: Rendering resolution. 300 keeps Arabic diacritics legible.
        max_pages: Render at most this many pages. ``None`` renders all.
    """

    def __init__(self, dpi: int = 300, max_pages: int | None = None) -> None:
        if max_pages is not None and max_pages < 1:
            raise ValueError("max_pages must be at least 1")
        self.dpi = dpi
        self.max_pages = max_pages

    def _page_range(self) -> dict[str, int]:
        if self.max_pages is None:
            return {}
        return {"first_page": 1, "last_page": self.max_pages}

    def pdf_to_images(self, pdf_source: Path | str | bytes) -> list[np.ndarray]:
        """Convert a PDF to a list of RGB images.

        Args:
            pdf_source: Path to a PDF file or raw PDF bytes.

        Returns:
            One numpy array per rendered page.

        Raises:
            FileNotFoundError: If a path is given and the file does not exist.
            RuntimeError: If PDF conversion fails.
        """
        if isinstance(pdf_source, str | Path):
            path = Path(pdf_source)
            if not path.exists():
                raise FileNotFoundError(f"PDF file not found: {path}")

        try:
            if isinstance(pdf_source, bytes):
                pil_images = convert_from_bytes(pdf_source, dpi=self.dpi, **self._page_range())
            else:
                pil_images = convert_from_path(
                    str(pdf_source), dpi=self.dpi, **self._page_range()
                )
        except _CONVERSION_ERRORS as exc:
            raise RuntimeError(f"PDF conversion failed: {exc}") from exc

        images = [np.array(img.convert("RGB")) for img in pil_images]
        logger.info("Converted PDF to %d images at %d DPI", len(images), self.dpi)
        return images

    def get_page_count(self, pdf_path: Path) -> int:
        """Number of pages in a PDF, read without rendering."""
        info = pdfinfo_from_path(str(pdf_path))
        count = int(info["Pages"])
        logger.debug("PDF %s has %d pages", pdf_path, count)
        return count
