"""Quality review of a mapping before it enters the approval queue.

Produces a list of issues (low confidence, missing or malformed fields,
values not found in the source text), a 0-100 score and the decision
whether the mapping can go to approval.
"""

import re
from dataclasses import dataclass, field
from enum import StrEnum

from dzocr.extraction.legal_entities import normalize_date
from dzocr.mapping.mapper import MappingResult
from dzocr.utils.logger import get_logger

from .rules_engine import LEGAL_NUMBER_RE

logger = get_logger(__name__)

CRITICAL_FIELDS = ("title", "date", "institution", "type")
SEVERITY_PENALTY = {"critical": 25, "warning": 10, "info": 2}


class IssueKind(StrEnum):
    LOW_CONFIDENCE = "low_confidence"
    MISSING_FIELD = "missing_field"
    INVALID_FORMAT = "invalid_format"
    INCONSISTENCY = "inconsistency"


@dataclass
class ValidationIssue:
    """A problem found while reviewing a mapped field."""

    kind: IssueKind
    severity: str
    field: str
    message: str
    suggestions: list[str] = field(default_factory=list)
    auto_fixable: bool = False


@dataclass
class ReviewReport:
    """Review outcome for one mapping."""

    form_id: str
    issues: list[ValidationIssue]
    score: float
    is_valid: bool
    ready_for_approval: bool
    recommendations: list[str] = field(default_factory=list)

    def issues_for(self, field_name: str) -> list[ValidationIssue]:
        return [i for i in self.issues if i.field == field_name]

    def to_dict(self) -> dict[str, object]:
        return {
            "form_id": self.form_id,
            "score": self.score,
            "is_valid": self.is_valid,
            "ready_for_approval": self.ready_for_approval,
            "issues": [
                {
                    "kind": i.kind.value,
                    "severity": i.severity,
                    "field": i.field,
                    "message": i.message,
                    "suggestions": i.suggestions,
                    "auto_fixable": i.auto_fixable,
                }
                for i in self.issues
            ],
            "recommendations": self.recommendations,
        }


def _normalize(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip().lower()


class MappingReviewer:
    """Reviews mapping results for approval readiness.

    Args:
        confidence_threshold: Minimum acceptable field confidence (0-1).
        approval_score: Score a mapping must exceed to be approvable.
        critical_fields: Fields whose absence or doubt blocks approval.
    """

    def __init__(
        self,
        confidence_threshold: float = 0.7,
        approval_score: float = 80.0,
        critical_fields: tuple[str, ...] = CRITICAL_FIELDS,
    ) -> None:
        self.confidence_threshold = confidence_threshold
        self.approval_score = approval_score
        self.critical_fields = critical_fields

    def review(self, mapping: MappingResult, source_text: str = "") -> ReviewReport:
        """Review a mapping result.

        Args:
            mapping: Mapping to review.
            source_text: Corrected document text the values came from.
                When empty, the source consistency check is skipped.

        Returns:
            Review report with issues, score and approval readiness.
        """
        issues: list[ValidationIssue] = []
        normalized_source = _normalize(source_text)

        for mapped in mapping.fields:
            critical = mapped.name in self.critical_fields
            suggestions = [s.value for s in mapped.suggestions]

            if not mapped.mapped:
                if critical:
                    issues.append(
                        ValidationIssue(
                            IssueKind.MISSING_FIELD,
                            "critical",
                            mapped.name,
                            f"Critical field '{mapped.label}' is missing",
                            suggestions,
                            auto_fixable=bool(suggestions),
                        )
                    )
                continue

            if mapped.confidence < self.confidence_threshold:
                issues.append(
                    ValidationIssue(
                        IssueKind.LOW_CONFIDENCE,
                        "critical" if critical else "warning",
                        mapped.name,
                        f"Low confidence for '{mapped.label}' ({mapped.confidence:.0%})",
                        suggestions,
                    )
                )

            format_issues = self._format_issues(mapped.name, mapped.value or "")
            issues.extend(format_issues)
            if mapped.validation_status == "invalid" and not format_issues:
                issues.append(
                    ValidationIssue(
                        IssueKind.INVALID_FORMAT,
                        "warning",
                        mapped.name,
                        "; ".join(mapped.validation_messages),
                    )
                )

            if (
                normalized_source
                and mapped.source != "attribute"
                and _normalize(mapped.value or "") not in normalized_source
            ):
                issues.append(
                    ValidationIssue(
                        IssueKind.INCONSISTENCY,
                        "info",
                        mapped.name,
                        f"Value of '{mapped.label}' not found verbatim in the document",
                    )
                )

        score = max(0.0, 100.0 - sum(SEVERITY_PENALTY[i.severity] for i in issues))
        is_valid = not any(i.severity == "critical" for i in issues)
        report = ReviewReport(
            form_id=mapping.form_id,
            issues=issues,
            score=score,
            is_valid=is_valid,
            ready_for_approval=is_valid and score > self.approval_score,
            recommendations=self._recommendations(issues),
        )
        logger.info(
            "Review of '%s': score=%.0f, %d issue(s), ready=%s",
            mapping.form_id,
            score,
            len(issues),
            report.ready_for_approval,
        )
        return report

    @staticmethod
    def _format_issues(name: str, value: str) -> list[ValidationIssue]:
        if name == "date" and normalize_date(value) is None:
            return [
                ValidationIssue(
                    IssueKind.INVALID_FORMAT,
                    "warning",
                    name,
                    f"Unrecognized date format: {value}",
                )
            ]
        if name == "number" and not LEGAL_NUMBER_RE.match(value.strip()):
            return [
                ValidationIssue(
                    IssueKind.INVALID_FORMAT,
                    "warning",
                    name,
                    f"Act number should look like YY-NNN: {value}",
                    auto_fixable=bool(re.search(r"\d", value)),
                )
            ]
        return []

    @staticmethod
    def _recommendations(issues: list[ValidationIssue]) -> list[str]:
        kinds = {i.kind for i in issues}
        recommendations: list[str] = []
        if IssueKind.MISSING_FIELD in kinds:
            recommendations.append("Fill the missing critical fields before approval")
        if IssueKind.LOW_CONFIDENCE in kinds:
            recommendations.append("Check low-confidence fields against the scan")
        if IssueKind.INVALID_FORMAT in kinds:
            recommendations.append("Correct the field formats (dates, act numbers)")
        if IssueKind.INCONSISTENCY in kinds:
            recommendations.append("Compare mapped values with the corrected text")
        return recommendations
