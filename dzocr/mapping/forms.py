"""Form schemas that extracted legal data is mapped onto.

Schemas come from a YAML file; a document is matched to a schema by
counting which of the schema's identifier patterns occur in its text.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from dzocr.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class FormField:
    """A field of a target form and how to find its value."""

    name: str
    label: str
    type: str = "text"
    required: bool = False
    patterns: list[str] = field(default_factory=list)
    entity_types: list[str] = field(default_factory=list)
    attribute: str | None = None
    keywords: list[str] = field(default_factory=list)
    confidence_threshold: float = 0.6
    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None


@dataclass
class FormSchema:
    """A target form: identifiers for matching, fields for mapping."""

    form_id: str
    name: str
    description: str = ""
    identifiers: list[str] = field(default_factory=list)
    fields: list[FormField] = field(default_factory=list)
    min_confidence: float = 0.2

    def get_field(self, name: str) -> FormField | None:
        return next((f for f in self.fields if f.name == name), None)


@dataclass
class FormMatch:
    """Result of matching a document against the known forms."""

    form_id: str
    confidence: float


def _default_forms() -> dict:
    return {
        "algerian-legal-document": {
            "name": "Texte juridique algérien",
            "description": "Lois, décrets, arrêtés et textes du Journal officiel",
            "identifiers": [
                r"d[ée]cret|مرسوم",
                r"\bloi\b|قانون",
                r"arr[êe]t[ée]|قرار",
                r"journal\s+officiel|الجريدة\s+الرسمية",
                r"\barticle\b|المادة",
            ],
            "fields": [
                {
                    "name": "title",
                    "label": "Titre",
                    "required": True,
                    "attribute": "title",
                    "patterns": [
                        r"^\s*((?:D[ÉE]CRET|LOI|ARR[ÊE]T[ÉE]|ORDONNANCE)\b[^\n]*N[°º][^\n]*)$",
                        r"^\s*((?:مرسوم|قانون|قرار|أمر)[^\n]*رقم[^\n]*)$",
                    ],
                    "keywords": ["décret", "loi", "arrêté", "مرسوم", "قانون"],
                    "confidence_threshold": 0.7,
                    "min_length": 5,
                    "max_length": 200,
                },
                {
                    "name": "number",
                    "label": "Numéro",
                    "type": "number",
                    "patterns": [r"N[°º]\s*(\d{2,4}[-/]\d{1,4})", r"رقم\s*(\d{2,4}[-/]\d{1,4})"],
                    "entity_types": ["number"],
                    "keywords": ["n°", "رقم"],
                    "confidence_threshold": 0.8,
                    "pattern": r"^\d{2,4}[-/]\d{1,4}$",
                },
                {
                    "name": "date",
                    "label": "Date",
                    "type": "date",
                    "required": True,
                    "patterns": [
                        r"\bdu\s+(\d{1,2}(?:er)?\s+[A-Za-zÀ-ÿ]+\s+\d{4})",
                        r"(?:المؤرخ\s+في|الموافق\s+لـ?)\s*(\d{1,2}\s+[ء-ي]+\s+\d{4})",
                    ],
                    "entity_types": ["date"],
                    "keywords": ["du", "المؤرخ", "الموافق"],
                    "confidence_threshold": 0.8,
                },
                {
                    "name": "institution",
                    "label": "Institution",
                    "required": True,
                    "patterns": [
                        r"^\s*(MINIST[ÈE]RE\b[^\n]+)$",
                        r"^\s*(PR[ÉE]SIDENCE DE LA R[ÉE]PUBLIQUE)\s*$",
                        r"^\s*(SECR[ÉE]TARIAT G[ÉE]N[ÉE]RAL\b[^\n]*)$",
                    ],
                    "entity_types": ["institution"],
                    "keywords": ["ministère", "présidence", "وزارة"],
                    "confidence_threshold": 0.6,
                },
                {
                    "name": "type",
                    "label": "Type de texte",
                    "type": "select",
                    "required": True,
                    "attribute": "document_type",
                    "confidence_threshold": 0.6,
                },
                {
                    "name": "subject",
                    "label": "Objet",
                    "type": "textarea",
                    "entity_types": ["subject"],
                    "keywords": ["portant", "relatif", "المتضمن"],
                    "confidence_threshold": 0.5,
                    "max_length": 500,
                },
                {
                    "name": "jo_number",
                    "label": "Numéro du Journal officiel",
                    "type": "number",
                    "attribute": "jo_number",
                    "confidence_threshold": 0.6,
                },
            ],
        },
        "administrative-procedure": {
            "name": "Procédure administrative",
            "description": "Démarches administratives et pièces à fournir",
            "identifiers": [
                r"proc[ée]dure|إجراء",
                r"dossier|ملف",
                r"pi[èe]ces?\s+[àa]\s+fournir|الوثائق\s+المطلوبة",
                r"demande|طلب",
            ],
            "fields": [
                {
                    "name": "procedure_name",
                    "label": "Intitulé de la procédure",
                    "required": True,
                    "attribute": "title",
                    "confidence_threshold": 0.6,
                    "min_length": 5,
                    "max_length": 200,
                },
                {
                    "name": "institution",
                    "label": "Administration",
                    "required": True,
                    "entity_types": ["institution"],
                    "confidence_threshold": 0.6,
                },
                {
                    "name": "wilaya",
                    "label": "Wilaya",
                    "patterns": [r"Wilaya\s+d['’e]\s*([A-Za-zÀ-ÿ\-]+)", r"ولاية\s+([ء-ي]+)"],
                    "keywords": ["wilaya", "ولاية"],
                    "confidence_threshold": 0.6,
                },
                {
                    "name": "fees",
                    "label": "Frais",
                    "type": "currency",
                    "entity_types": ["amount"],
                    "confidence_threshold": 0.6,
                },
                {
                    "name": "deadline",
                    "label": "Délai",
                    "patterns": [r"d[ée]lai\s+(?:de\s+)?(\d+\s+jours?)", r"أجل\s+(\d+\s+يوما?)"],
                    "keywords": ["délai", "أجل"],
                    "confidence_threshold": 0.6,
                },
                {
                    "name": "reference",
                    "label": "Texte de référence",
                    "entity_types": ["number"],
                    "confidence_threshold": 0.5,
                },
            ],
        },
    }


def _build_schema(form_id: str, raw: dict) -> FormSchema:
    return FormSchema(
        form_id=form_id,
        name=raw.get("name", form_id),
        description=raw.get("description", ""),
        identifiers=list(raw.get("identifiers", [])),
        fields=[FormField(**f) for f in raw.get("fields", [])],
        min_confidence=raw.get("min_confidence", 0.2),
    )


class FormRegistry:
    """Known form schemas, loaded from YAML.

    Args:
        forms_path: Path to the YAML file defining the forms.
    """

    def __init__(self, forms_path: Path = Path("configs/forms.yaml")) -> None:
        self.forms = self._load_forms(forms_path)

    def _load_forms(self, path: Path) -> dict[str, FormSchema]:
        """Load form definitions, falling back to the built-in forms.

        Args:
            path: Path to the forms YAML file.

        Returns:
            Mapping of form id to schema.

        Raises:
            ValueError: If a field definition has unknown keys.
        """
        raw: dict = {}
        if path.exists():
            with open(path, encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
            if raw:
                logger.info("Loaded %d form schemas from %s", len(raw), path)
        if not raw:
            logger.debug("No forms file at %s, using built-in forms", path)
            raw = _default_forms()

        try:
            return {form_id: _build_schema(form_id, entry) for form_id, entry in raw.items()}
        except TypeError as exc:
            raise ValueError(f"Invalid form definition in {path}: {exc}") from exc

    def get(self, form_id: str) -> FormSchema:
        """Return a form schema.

        Raises:
            KeyError: If the form is unknown.
        """
        if form_id not in self.forms:
            raise KeyError(f"Unknown form: {form_id}")
        return self.forms[form_id]

    def list_forms(self) -> list[FormSchema]:
        return list(self.forms.values())

    def match_form(self, text: str) -> FormMatch | None:
        """Find the form whose identifiers best match the text.

        Args:
            text: Corrected document text.

        Returns:
            Best match, or ``None`` if no form reaches its minimum score.
        """
        best: FormMatch | None = None
        for form in self.forms.values():
            score = self._calculate_match_score(text, form)
            if score >= form.min_confidence and (best is None or score > best.confidence):
                best = FormMatch(form_id=form.form_id, confidence=score)

        if best:
            logger.info("Matched form '%s' (score=%.2f)", best.form_id, best.confidence)
        return best

    def _calculate_match_score(self, text: str, form: FormSchema) -> float:
        """Share of the form identifiers found in the text."""
        if not form.identifiers:
            return 0.0
        hits = sum(
            1 for ident in form.identifiers if re.search(ident, text, re.IGNORECASE)
        )
        return hits / len(form.identifiers)
