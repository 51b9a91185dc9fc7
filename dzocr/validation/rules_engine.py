"""Configurable validation rules engine for mapped legal document fields.

Validates dates, legal act numbers, wilaya codes, lengths and required
fields with confidence adjustments and cross-field validation.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from dzocr.extraction.legal_entities import normalize_date
from dzocr.utils.logger import get_logger

logger = get_logger(__name__)

LEGAL_NUMBER_RE = re.compile(r"^(\d{2}|\d{4})[-/](\d{1,4})$")
WILAYA_COUNT = 58


@dataclass
class ValidationResult:
    """Result of a single field validation check."""

    field_name: str
    is_valid: bool
    message: str
    rule_name: str
    confidence_adjustment: float = 0.0


@dataclass
class ValidationReport:
    """Aggregated validation report for a document."""

    all_valid: bool
    results: list[ValidationResult]
    warnings: list[str] = field(default_factory=list)
    field_confidences: dict[str, float] = field(default_factory=dict)

    def failures(self) -> list[ValidationResult]:
        return [r for r in self.results if not r.is_valid]


class RulesEngine:
    """Checks mapped fields against per document type rules.

    Rules come from YAML, keyed by document type (or form id), and each
    check nudges the field confidence up or down. A legal act number is
    also checked against the year of the act date.

    Args:
        rules_path: Path to the validation rules YAML file.
    """

    def __init__(
        self, rules_path: Path = Path("configs/validation_rules.yaml")
    ) -> None:
        self.rules = self._load_rules(rules_path)
        self._validators: dict[str, Any] = {
            "required": self._validate_required,
            "date_format": self._validate_date,
            "legal_number": self._validate_legal_number,
            "regex": self._validate_regex,
            "min_length": self._validate_min_length,
            "max_length": self._validate_max_length,
            "wilaya_code": self._validate_wilaya_code,
        }

    def _load_rules(self, path: Path) -> dict:
        """Rules from YAML, or the built-in act rules when the file is absent or empty."""
        if path.exists():
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
            if data:
                logger.info("Loaded validation rules from %s", path)
                return data
        logger.debug("Using default validation rules")
        return self._default_rules()

    def _default_rules(self) -> dict:
        """Rules used when no configuration file is available."""
        act = {
            "title": [{"type": "required"}, {"type": "min_length", "value": 5}],
            "number": [{"type": "legal_number"}],
            "date": [{"type": "required"}, {"type": "date_format"}],
            "institution": [{"type": "required"}],
        }
        return {
            "loi": act,
            "ordonnance": act,
            "decret": act,
            "arrete": act,
            "circulaire": {"date": [{"type": "date_format"}], "institution": [{"type": "required"}]},
            "instruction": {"date": [{"type": "date_format"}], "institution": [{"type": "required"}]},
            "journal_officiel": {
                "jo_number": [{"type": "required"}, {"type": "regex", "pattern": r"^\d{1,3}$"}],
                "date": [{"type": "date_format"}],
            },
            "administrative-procedure": {
                "procedure_name": [{"type": "required"}],
                "institution": [{"type": "required"}],
                "wilaya_code": [{"type": "wilaya_code"}],
            },
        }

    def validate(
        self,
        fields: dict[str, Any],
        document_type: str = "decret",
        field_confidences: dict[str, float] | None = None,
    ) -> ValidationReport:
        """Validate mapped fields against document-type rules.

        Args:
            fields: Mapped field name-value pairs.
            document_type: Document type (or form id) selecting the rules.
            field_confidences: Initial confidence scores per field.

        Returns:
            Validation report with results and adjusted confidences.
        """
        results: list[ValidationResult] = []
        warnings: list[str] = []
        adjusted = dict(field_confidences or {})

        doc_rules = self.rules.get(document_type)
        if doc_rules is None:
            warnings.append(f"No validation rules for document type: {document_type}")
            doc_rules = {}

        for field_name, rules in doc_rules.items():
            value = fields.get(field_name)

            for rule in rules:
                rule_type = rule.get("type")
                validator = self._validators.get(rule_type)

                if not validator:
                    warnings.append(f"Unknown rule type: {rule_type}")
                    continue

                result = validator(field_name, value, rule)
                results.append(result)

                if field_name in adjusted:
                    adjusted[field_name] = max(
                        0.0, min(1.0, adjusted[field_name] + result.confidence_adjustment)
                    )

        results.extend(self._cross_validate(fields))

        all_valid = all(r.is_valid for r in results)
        logger.info(
            "Validation for %s: %s (%d checks)",
            document_type,
            "PASSED" if all_valid else "FAILED",
            len(results),
        )
        return ValidationReport(
            all_valid=all_valid,
            results=results,
            warnings=warnings,
            field_confidences=adjusted,
        )

    def _validate_required(
        self, field_name: str, value: Any, rule: dict
    ) -> ValidationResult:
        """Check that a required field is present and non-empty."""
        if value is not None and str(value).strip():
            return ValidationResult(field_name, True, "Required field present", "required")
        return ValidationResult(
            field_name, False, f"Required field missing: {field_name}", "required", -0.5
        )

    def _validate_date(
        self, field_name: str, value: Any, rule: dict
    ) -> ValidationResult:
        """Check that a value is a French, Arabic or numeric Gregorian date."""
        if value is None:
            return ValidationResult(field_name, True, "No value to validate", "date_format")

        parsed = normalize_date(str(value))
        if parsed is not None:
            return ValidationResult(
                field_name, True, f"Valid date: {parsed.isoformat()}", "date_format", 0.1
            )
        return ValidationResult(
            field_name, False, f"Invalid date format: {value}", "date_format", -0.2
        )

    def _validate_legal_number(
        self, field_name: str, value: Any, rule: dict
    ) -> ValidationResult:
        """Check the ``YY-NNN`` numbering of Algerian legal acts."""
        if value is None:
            return ValidationResult(field_name, True, "No value to validate", "legal_number")

        if LEGAL_NUMBER_RE.match(str(value).strip()):
            return ValidationResult(
                field_name, True, "Valid legal act number", "legal_number", 0.1
            )
        return ValidationResult(
            field_name, False, f"Invalid legal act number: {value}", "legal_number", -0.2
        )

    def _validate_regex(
        self, field_name: str, value: Any, rule: dict
    ) -> ValidationResult:
        """Match a field against a pattern from the rules file."""
        if value is None:
            return ValidationResult(field_name, True, "No value to validate", "regex")

        pattern = rule.get("pattern", "")
        if re.match(pattern, str(value)):
            return ValidationResult(field_name, True, "Matches pattern", "regex", 0.05)
        return ValidationResult(
            field_name, False, f"Does not match pattern: {pattern}", "regex", -0.1
        )

    def _validate_min_length(
        self, field_name: str, value: Any, rule: dict
    ) -> ValidationResult:
        if value is None:
            return ValidationResult(field_name, True, "No value to validate", "min_length")
        minimum = int(rule.get("value", 1))
        if len(str(value).strip()) >= minimum:
            return ValidationResult(field_name, True, "Length OK", "min_length")
        return ValidationResult(
            field_name, False, f"Shorter than {minimum} characters", "min_length", -0.1
        )

    def _validate_max_length(
        self, field_name: str, value: Any, rule: dict
    ) -> ValidationResult:
        if value is None:
            return ValidationResult(field_name, True, "No value to validate", "max_length")
        maximum = int(rule.get("value", 255))
        if len(str(value).strip()) <= maximum:
            return ValidationResult(field_name, True, "Length OK", "max_length")
        return ValidationResult(
            field_name, False, f"Longer than {maximum} characters", "max_length", -0.1
        )

    def _validate_wilaya_code(
        self, field_name: str, value: Any, rule: dict
    ) -> ValidationResult:
        """Check an administrative wilaya code (1 to 58)."""
        if value is None:
            return ValidationResult(field_name, True, "No value to validate", "wilaya_code")
        try:
            code = int(str(value).strip())
        except ValueError:
            return ValidationResult(
                field_name, False, f"Invalid wilaya code: {value}", "wilaya_code", -0.2
            )
        if 1 <= code <= WILAYA_COUNT:
            return ValidationResult(field_name, True, "Valid wilaya code", "wilaya_code", 0.05)
        return ValidationResult(
            field_name,
            False,
            f"Wilaya code {code} outside [1, {WILAYA_COUNT}]",
            "wilaya_code",
            -0.2,
        )

    def _cross_validate(self, fields: dict[str, Any]) -> list[ValidationResult]:
        """Run cross-field validation checks.

        Checks that the year prefix of a legal act number agrees with the
        year of the act date (``20-123`` is an act of 2020).

        Args:
            fields: All mapped field values.

        Returns:
            List of cross-field validation results.
        """
        results: list[ValidationResult] = []

        number, value = fields.get("number"), fields.get("date")
        if not number or not value:
            return results

        match = LEGAL_NUMBER_RE.match(str(number).strip())
        parsed = normalize_date(str(value))
        if not match or parsed is None:
            return results

        prefix = match.group(1)
        year = parsed.year if len(prefix) == 4 else parsed.year % 100
        if int(prefix) == year:
            results.append(
                ValidationResult(
                    "number_date", True, "Act number matches act year", "cross_field", 0.1
                )
            )
        else:
            results.append(
                ValidationResult(
                    "number_date",
                    False,
                    f"Act number {number} does not match year {parsed.year}",
                    "cross_field",
                    -0.15,
                )
            )
        return results
