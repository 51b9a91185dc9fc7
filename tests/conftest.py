"""Shared test fixtures for the legal document OCR test suite."""

from pathlib import Path

import numpy as np
import pytest


@pytest.fixture
def sample_image() -> np.ndarray:
    """Create a simple synthetic grayscale test image."""
    image = np.full((200, 300), 255, dtype=np.uint8)
    image[80:90, 40:260] = 0
    image[110:120, 40:200] = 0
    return image


@pytest.fixture
def sample_color_image() -> np.ndarray:
    """Create a simple synthetic BGR test image."""
    image = np.full((200, 300, 3), 255, dtype=np.uint8)
    image[80:90, 40:260] = (0, 0, 0)
    return image


@pytest.fixture
def french_decree() -> str:
    """A French executive decree as it appears in the Journal Officiel."""
    return (
        "RÉPUBLIQUE ALGÉRIENNE DÉMOCRATIQUE ET POPULAIRE\n"
        "MINISTÈRE DE LA JUSTICE\n"
        "Décret exécutif n° 20-123 du 15 mars 2020 portant organisation "
        "de l'administration centrale du ministère de la justice.\n"
        "Le Premier ministre,\n"
        "Vu la loi n° 90-11 du 21 avril 1990 relative aux relations de travail ;\n"
        "Décrète :\n"
        "Article 1er. - Le présent décret a pour objet de fixer l'organisation "
        "de l'administration centrale.\n"
        "Art. 2. - Le présent décret sera publié au Journal officiel.\n"
        "Fait à Alger, le 15 mars 2020.\n"
    )


@pytest.fixture
def arabic_decree() -> str:
    """An Arabic presidential decree, already in logical order."""
    return (
        "الجمهورية الجزائرية الديمقراطية الشعبية\n"
        "مرسوم رئاسي رقم 20-45 المؤرخ في 12 فبراير 2020 المتضمن تنظيم المصالح\n"
        "إن رئيس الجمهورية،\n"
        "المادة 1 : يهدف هذا المرسوم إلى تحديد تنظيم المصالح.\n"
        "المادة 2 : ينشر هذا المرسوم في الجريدة الرسمية.\n"
    )


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def config_dir(project_root: Path) -> Path:
    """Return the configs directory path."""
    return project_root / "configs"
