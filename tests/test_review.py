"""Tests for mapping review before approval."""

from dzocr.mapping.mapper import FieldCandidate, MappedField, MappingResult
from dzocr.validation.review import IssueKind, MappingReviewer

SOURCE = (
    "MINISTÈRE DE LA JUSTICE\n"
    "Décret exécutif n° 20-123 du 15 mars 2020 portant organisation des services."
)


def _field(
    name: str,
    value: str | None,
    confidence: float = 0.9,
    source: str | None = "pattern",
    status: str = "valid",
    messages: list[str] | None = None,
    suggestions: list[FieldCandidate] | None = None,
) -> MappedField:
    return MappedField(
        name=name,
        label=name.capitalize(),
        value=value,
        confidence=confidence if value is not None else 0.0,
        source=source if value is not None else None,
        validation_status=status if value is not None else "missing",
        validation_messages=messages or [],
        suggestions=suggestions or [],
    )


def _mapping(*fields: MappedField) -> MappingResult:
    base = {
        "title": _field("title", "Décret exécutif n° 20-123"),
        "number": _field("number", "20-123", 0.95, "entity"),
        "date": _field("date", "15 mars 2020", 0.95, "entity"),
        "institution": _field("institution", "MINISTÈRE DE LA JUSTICE", 0.9, "entity"),
        "type": _field("type", "decret", 0.85, "attribute"),
    }
    for f in fields:
        base[f.name] = f
    return MappingResult(form_id="algerian-legal-document", fields=list(base.values()))


class TestMappingReviewer:
    """Tests for MappingReviewer.review."""

    def setup_method(self) -> None:
        self.reviewer = MappingReviewer()

    def test_clean_mapping_is_ready(self) -> None:
        report = self.reviewer.review(_mapping(), SOURCE)
        assert report.issues == []
        assert report.score == 100.0
        assert report.is_valid is True
        assert report.ready_for_approval is True
        assert report.recommendations == []

    def test_missing_critical_field(self) -> None:
        suggestion = FieldCandidate("Ministère de la justice", 0.5, "semantic")
        report = self.reviewer.review(
            _mapping(_field("institution", None, suggestions=[suggestion])), SOURCE
        )
        issues = report.issues_for("institution")
        assert len(issues) == 1
        assert issues[0].kind == IssueKind.MISSING_FIELD
        assert issues[0].severity == "critical"
        assert issues[0].suggestions == ["Ministère de la justice"]
        assert issues[0].auto_fixable is True
        assert report.score == 75.0
        assert report.is_valid is False
        assert report.ready_for_approval is False
        assert "Fill the missing critical fields before approval" in report.recommendations

    def test_missing_optional_field_ignored(self) -> None:
        report = self.reviewer.review(_mapping(_field("jo_number", None)), SOURCE)
        assert report.issues == []

    def test_low_confidence_severity(self) -> None:
        report = self.reviewer.review(
            _mapping(
                _field("date", "15 mars 2020", 0.5, "entity"),
                _field("subject", "portant organisation des services", 0.55, "entity"),
            ),
            SOURCE,
        )
        assert report.issues_for("date")[0].severity == "critical"
        assert report.issues_for("subject")[0].severity == "warning"
        assert report.score == 65.0
        assert report.ready_for_approval is False

    def test_malformed_number(self) -> None:
        report = self.reviewer.review(_mapping(_field("number", "20123", 0.95)), "")
        issue = report.issues_for("number")[0]
        assert issue.kind == IssueKind.INVALID_FORMAT
        assert issue.auto_fixable is True
        assert report.score == 90.0
        assert report.is_valid is True
        assert report.ready_for_approval is True

    def test_unparseable_date(self) -> None:
        report = self.reviewer.review(
            _mapping(_field("date", "bientôt", 0.9, status="warning")), ""
        )
        assert [i.kind for i in report.issues] == [IssueKind.INVALID_FORMAT]

    def test_invalid_status_reported_once(self) -> None:
        report = self.reviewer.review(
            _mapping(
                _field("title", "Déc", status="invalid", messages=["Shorter than 5 characters"])
            ),
            "",
        )
        issues = report.issues_for("title")
        assert len(issues) == 1
        assert issues[0].message == "Shorter than 5 characters"

    def test_value_not_in_source(self) -> None:
        report = self.reviewer.review(
            _mapping(_field("institution", "Ministère des finances", 0.9, "entity")), SOURCE
        )
        issues = report.issues_for("institution")
        assert [i.kind for i in issues] == [IssueKind.INCONSISTENCY]
        assert report.score == 98.0

    def test_attribute_values_not_checked_against_source(self) -> None:
        report = self.reviewer.review(_mapping(), SOURCE)
        assert report.issues_for("type") == []

    def test_approval_score_threshold(self) -> None:
        reviewer = MappingReviewer(approval_score=95.0)
        report = reviewer.review(_mapping(_field("number", "20123", 0.95)), "")
        assert report.is_valid is True
        assert report.ready_for_approval is False

    def test_to_dict(self) -> None:
        data = self.reviewer.review(_mapping(_field("number", "20123", 0.95)), "").to_dict()
        assert data["form_id"] == "algerian-legal-document"
        assert data["issues"][0]["kind"] == "invalid_format"
        assert data["recommendations"] == ["Correct the field formats (dates, act numbers)"]
