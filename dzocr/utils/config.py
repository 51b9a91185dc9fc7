"""Configuration for the Algerian legal document OCR pipeline.

Settings are read from a YAML file and validated with pydantic. Every
section has defaults, so the pipeline also runs without any file.
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class PreprocessingConfig(BaseModel):
    """Image clean-up steps applied before OCR."""

    deskew_enabled: bool = True
    deskew_angle_threshold: float = 0.5
    artifact_removal_enabled: bool = True
    denoise_enabled: bool = True
    denoise_method: str = "median"
    contrast_enabled: bool = True
    clahe_clip_limit: float = 2.0
    clahe_tile_size: int = 8
    sharpen_enabled: bool = False
    binarize_enabled: bool = True
    binarize_method: str = "adaptive"


class OCRConfig(BaseModel):
    """Tesseract and PDF rasterisation settings."""

    tesseract_cmd: str | None = None
    languages: str = "ara+fra"
    profile: str = "bilingual"
    auto_profile: bool = True
    pdf_dpi: int = 300
    max_pages: int | None = None


class CorrectionConfig(BaseModel):
    """Switches and rule files for the text correction stages."""

    remove_markers: bool = True
    normalize_spaces: bool = True
    fix_ligatures: bool = True
    separate_words: bool = True
    legal_terms: bool = True
    fix_rtl: bool = True
    arabic_gate_ratio: float = 0.1
    rules_path: str = "configs/corrections.yaml"


class LanguageConfig(BaseModel):
    """Ratio thresholds for arabic/french/mixed classification."""

    arabic_threshold: float = 0.9
    french_threshold: float = 0.1


class MappingConfig(BaseModel):
    """Form schemas and scoring thresholds for field mapping."""

    forms_path: str = "configs/forms.yaml"
    default_form: str = "algerian-legal-document"
    semantic_threshold: float = 0.4
    suggestion_threshold: float = 0.3
    max_suggestions: int = 3


class ValidationConfig(BaseModel):
    """Validation rules and review thresholds."""

    rules_path: str = "configs/validation_rules.yaml"
    confidence_threshold: float = 0.7
    approval_score: float = 80.0


class AppConfig(BaseModel):
    """Top-level application configuration."""

    preprocessing: PreprocessingConfig = Field(default_factory=PreprocessingConfig)
    ocr: OCRConfig = Field(default_factory=OCRConfig)
    correction: CorrectionConfig = Field(default_factory=CorrectionConfig)
    language: LanguageConfig = Field(default_factory=LanguageConfig)
    mapping: MappingConfig = Field(default_factory=MappingConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    log_level: str = "INFO"


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.
            Defaults to configs/config.yaml.

    Returns:
        Validated application configuration.
    """
    if path is None:
        path = Path("configs/config.yaml")

    if not path.exists():
        logger.info("No config file found at %s, using defaults", path)
        return AppConfig()

    logger.info("Loading configuration from %s", path)
    with open(path, encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    return AppConfig(**raw)
