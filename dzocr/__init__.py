"""DZ Legal OCR.

OCR pipeline for Algerian legal documents: Tesseract with OpenCV
preprocessing, correction of bilingual Arabic/French OCR text, legal
entity extraction, form mapping and a manual approval workflow.
"""

__version__ = "1.0.0"
