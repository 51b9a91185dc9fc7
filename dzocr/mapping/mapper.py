"""Mapping of extracted legal data onto form fields.

Each field collects candidates from three sources (field patterns,
semantic matching against extracted entities, and the publication's
own attributes or entity types), keeps the most confident one and
validates it against the field constraints.
"""

import re
import time
from dataclasses import dataclass, field
from pathlib import Path

import Levenshtein

from dzocr.extraction.legal_entities import (
    DEFAULT_TITLE,
    LegalEntity,
    StructuredPublication,
    normalize_date,
)
from dzocr.utils.config import MappingConfig
from dzocr.utils.logger import get_logger

from .forms import FormField, FormRegistry

logger = get_logger(__name__)

CONTEXT_RADIUS = 50
ATTRIBUTE_CONFIDENCE = 0.85

SYNONYMS: dict[str, list[str]] = {
    "title": ["titre", "intitulé", "objet", "عنوان"],
    "date": ["date", "du", "en date", "المؤرخ", "بتاريخ", "الموافق"],
    "number": ["numéro", "n°", "référence", "رقم"],
    "institution": ["ministère", "présidence", "direction", "institution", "وزارة", "رئاسة", "مديرية"],
    "place": ["lieu", "wilaya", "commune", "fait à", "ولاية", "بلدية"],
    "amount": ["montant", "somme", "dinars", "DA", "مبلغ", "دينار"],
    "name": ["nom", "monsieur", "madame", "السيد", "السيدة"],
    "description": ["description", "portant", "relatif", "objet", "المتضمن", "المتعلق"],
}

# Form field type -> entity type it naturally holds.
TYPE_MAPPING: dict[str, str] = {
    "date": "date",
    "number": "number",
    "currency": "amount",
    "textarea": "subject",
}

_PLACEHOLDERS = {DEFAULT_TITLE, "other", ""}
_WORD_RE = re.compile(r"\w+", re.UNICODE)


@dataclass
class FieldCandidate:
    """A possible value for a form field."""

    value: str
    confidence: float
    source: str
    start: int | None = None


@dataclass
class MappedField:
    """Outcome of mapping one form field."""

    name: str
    label: str
    value: str | None
    confidence: float
    source: str | None
    validation_status: str
    validation_messages: list[str] = field(default_factory=list)
    suggestions: list[FieldCandidate] = field(default_factory=list)

    @property
    def mapped(self) -> bool:
        return self.value is not None


@dataclass
class MappingResult:
    """Result of mapping a publication onto a form."""

    form_id: str
    fields: list[MappedField]
    errors: list[str] = field(default_factory=list)
    steps: list[str] = field(default_factory=list)
    processing_time_ms: float = 0.0

    @property
    def mapped_count(self) -> int:
        return sum(1 for f in self.fields if f.mapped)

    @property
    def total_fields(self) -> int:
        return len(self.fields)

    @property
    def unmapped_fields(self) -> list[str]:
        return [f.name for f in self.fields if not f.mapped]

    @property
    def overall_confidence(self) -> float:
        if not self.fields:
            return 0.0
        return sum(f.confidence for f in self.fields) / len(self.fields)

    def get(self, name: str) -> MappedField | None:
        return next((f for f in self.fields if f.name == name), None)

    def as_dict(self) -> dict[str, str]:
        """Mapped values keyed by field name."""
        return {f.name: f.value for f in self.fields if f.value is not None}

    def confidences(self) -> dict[str, float]:
        return {f.name: f.confidence for f in self.fields if f.mapped}


def text_similarity(a: str, b: str) -> float:
    """Blend of normalized edit distance and word overlap.

    Args:
        a: First text.
        b: Second text.

    Returns:
        Similarity in [0, 1]: 0.6 Levenshtein + 0.4 word Jaccard.
    """
    a, b = a.lower().strip(), b.lower().strip()
    if not a or not b:
        return 0.0
    longest = max(len(a), len(b))
    edit = 1.0 - Levenshtein.distance(a, b) / longest
    words_a, words_b = set(_WORD_RE.findall(a)), set(_WORD_RE.findall(b))
    union = words_a | words_b
    jaccard = len(words_a & words_b) / len(union) if union else 0.0
    return 0.6 * edit + 0.4 * jaccard


class FieldMapper:
    """Maps structured publications onto form schemas.

    Args:
        registry: Known form schemas.
        config: Thresholds for semantic matching and suggestions.
    """

    def __init__(
        self, registry: FormRegistry, config: MappingConfig | None = None
    ) -> None:
        self.registry = registry
        self.config = config or MappingConfig()

    def map(
        self, publication: StructuredPublication, form_id: str | None = None
    ) -> MappingResult:
        """Fill a form from a structured publication.

        Args:
            publication: Output of the legal entity extractor.
            form_id: Target form. When ``None`` the form is matched from
                the text, falling back to the configured default.

        Returns:
            Mapping result with one entry per form field.

        Raises:
            KeyError: If ``form_id`` is not a known form.
        """
        start_time = time.time()
        steps: list[str] = []

        if form_id is None:
            match = self.registry.match_form(publication.text)
            form_id = match.form_id if match else self.config.default_form
            steps.append(f"form selection: {form_id}")
        form = self.registry.get(form_id)

        fields = [self._map_field(f, publication, steps) for f in form.fields]
        errors = [
            f"Required field missing: {f.name}"
            for f, mapped in zip(form.fields, fields)
            if f.required and not mapped.mapped
        ]

        result = MappingResult(
            form_id=form.form_id,
            fields=fields,
            errors=errors,
            steps=steps,
            processing_time_ms=(time.time() - start_time) * 1000,
        )
        logger.info(
            "Mapped %d/%d fields to '%s' (confidence=%.2f)",
            result.mapped_count,
            result.total_fields,
            form.form_id,
            result.overall_confidence,
        )
        return result

    def _map_field(
        self,
        form_field: FormField,
        publication: StructuredPublication,
        steps: list[str],
    ) -> MappedField:
        candidates = (
            self._pattern_candidates(form_field, publication.text)
            + self._semantic_candidates(form_field, publication)
            + self._direct_candidates(form_field, publication)
        )
        steps.append(f"{form_field.name}: {len(candidates)} candidate(s)")

        ranked = sorted(candidates, key=lambda c: c.confidence, reverse=True)
        best = ranked[0] if ranked else None

        if best is None or best.confidence < form_field.confidence_threshold:
            return MappedField(
                name=form_field.name,
                label=form_field.label,
                value=None,
                confidence=0.0,
                source=None,
                validation_status="missing",
                suggestions=self._suggestions(ranked),
            )

        status, messages = self.validate_value(form_field, best.value)
        return MappedField(
            name=form_field.name,
            label=form_field.label,
            value=best.value,
            confidence=round(best.confidence, 3),
            source=best.source,
            validation_status=status,
            validation_messages=messages,
            suggestions=self._suggestions(ranked[1:]),
        )

    def _suggestions(self, ranked: list[FieldCandidate]) -> list[FieldCandidate]:
        seen: set[str] = set()
        suggestions: list[FieldCandidate] = []
        for candidate in ranked:
            if candidate.confidence <= self.config.suggestion_threshold:
                break
            if candidate.value in seen:
                continue
            seen.add(candidate.value)
            suggestions.append(candidate)
            if len(suggestions) == self.config.max_suggestions:
                break
        return suggestions

    def _pattern_candidates(self, form_field: FormField, text: str) -> list[FieldCandidate]:
        """Candidates from the field's own extraction patterns."""
        candidates: list[FieldCandidate] = []
        for pattern in form_field.patterns:
            for match in re.finditer(pattern, text, re.IGNORECASE | re.MULTILINE):
                value = (match.group(1) if match.groups() else match.group(0)).strip()
                if not value:
                    continue
                confidence = (
                    0.6
                    + 0.2 * self._context_score(form_field, text, match.start(), match.end())
                    + 0.2 * self._position_score(form_field, match.start(), len(text))
                )
                candidates.append(
                    FieldCandidate(value, min(1.0, confidence), "pattern", match.start())
                )
        return candidates

    def _semantic_candidates(
        self, form_field: FormField, publication: StructuredPublication
    ) -> list[FieldCandidate]:
        """Candidates from extracted entities whose context names the field."""
        candidates: list[FieldCandidate] = []
        for entity in publication.entities:
            score = self._semantic_score(form_field, entity, publication.text)
            if score >= self.config.semantic_threshold:
                candidates.append(
                    FieldCandidate(entity.value, round(score, 3), "semantic", entity.start)
                )
        return candidates

    def _direct_candidates(
        self, form_field: FormField, publication: StructuredPublication
    ) -> list[FieldCandidate]:
        """Candidates from publication attributes and declared entity types."""
        candidates: list[FieldCandidate] = []
        if form_field.attribute:
            value = getattr(publication, form_field.attribute, None)
            if value is not None and str(value) not in _PLACEHOLDERS:
                candidates.append(FieldCandidate(str(value), ATTRIBUTE_CONFIDENCE, "attribute"))

        typed = [e for e in publication.entities if e.type in form_field.entity_types]
        if typed:
            best = max(typed, key=lambda e: (not e.referenced, e.confidence))
            candidates.append(FieldCandidate(best.value, best.confidence, "entity", best.start))
        return candidates

    def _semantic_score(
        self, form_field: FormField, entity: LegalEntity, text: str
    ) -> float:
        vocabulary = [form_field.name, form_field.label, *form_field.keywords]
        vocabulary += SYNONYMS.get(form_field.name, [])
        context = text[max(0, entity.start - CONTEXT_RADIUS) : entity.start]
        context_words = _WORD_RE.findall(context) or [context]
        text_score = max(
            (text_similarity(term, word) for term in vocabulary for word in context_words),
            default=0.0,
        )

        if entity.type in form_field.entity_types:
            type_score = 1.0
        elif TYPE_MAPPING.get(form_field.type) == entity.type:
            type_score = 0.5
        else:
            type_score = 0.0

        return 0.4 * text_score + 0.3 * type_score + 0.3 * entity.confidence

    def _context_score(self, form_field: FormField, text: str, start: int, end: int) -> float:
        """Share of the field keywords present around a match."""
        if not form_field.keywords:
            return 0.5
        window = text[max(0, start - CONTEXT_RADIUS) : end + CONTEXT_RADIUS].lower()
        hits = sum(1 for kw in form_field.keywords if kw.lower() in window)
        return hits / len(form_field.keywords)

    @staticmethod
    def _position_score(form_field: FormField, position: int, length: int) -> float:
        """Titles sit early, dates early or late, signatures late."""
        if length == 0:
            return 0.5
        relative = position / length
        if form_field.name in ("title", "procedure_name"):
            return 1.0 - relative
        if form_field.type == "date":
            return max(1.0 - relative, relative)
        if form_field.name == "signature":
            return relative
        return 0.5

    @staticmethod
    def validate_value(form_field: FormField, value: str) -> tuple[str, list[str]]:
        """Check a mapped value against the field constraints.

        Returns:
            ``(status, messages)`` where status is ``valid``, ``warning``
            or ``invalid``.
        """
        errors: list[str] = []
        warnings: list[str] = []

        if form_field.min_length is not None and len(value) < form_field.min_length:
            errors.append(f"Shorter than {form_field.min_length} characters")
        if form_field.max_length is not None and len(value) > form_field.max_length:
            errors.append(f"Longer than {form_field.max_length} characters")
        if form_field.pattern and not re.fullmatch(form_field.pattern, value):
            errors.append(f"Does not match pattern: {form_field.pattern}")
        if form_field.type == "date" and normalize_date(value) is None:
            warnings.append(f"Date could not be parsed: {value}")

        if errors:
            return "invalid", errors + warnings
        if warnings:
            return "warning", warnings
        return "valid", []


def build_mapper(config: MappingConfig, registry: FormRegistry | None = None) -> FieldMapper:
    """Create a mapper with the forms named in the configuration."""
    return FieldMapper(registry or FormRegistry(Path(config.forms_path)), config)

