"""Pydantic request/response schemas for the FastAPI endpoints."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from dzocr.approval.workflow import ApprovalStatus, Priority


class TextRequest(BaseModel):
    """A text to correct or classify."""

    text: str


class LanguageResponse(BaseModel):
    """Language classification of a text."""

    language: str
    arabic_ratio: float
    arabic_chars: int
    latin_chars: int
    french_words: int
    meaningful_chars: int
    preprocessing: str
    display_label: str
    tesseract_lang: str
    direction: str
    ocr_profile: str | None = None


class CorrectionResponse(BaseModel):
    """Corrected text with per-stage counts."""

    corrected_text: str
    corrections: list[str]
    markers_removed: int
    ligatures_fixed: int
    words_separated: int
    legal_fixes: int
    rtl_fixed: bool
    rtl_lines_fixed: int
    total_corrections: int
    language: LanguageResponse


class EntityResponse(BaseModel):
    """A legal entity found in the text."""

    type: str
    value: str
    confidence: float
    start: int
    end: int
    referenced: bool = False


class PublicationResponse(BaseModel):
    """Main attributes of an extracted legal publication."""

    document_type: str
    title: str
    language: str
    number: str | None = None
    date: str | None = None
    institution: str | None = None
    subject: str | None = None
    jo_number: str | None = None
    jo_date: str | None = None
    is_official: bool = False
    confidence: float = 0.0
    article_count: int = 0
    entities: list[EntityResponse] = Field(default_factory=list)


class SuggestionResponse(BaseModel):
    value: str
    confidence: float
    source: str


class MappedFieldResponse(BaseModel):
    """Response schema for a single mapped form field."""

    name: str
    label: str
    value: str | None
    confidence: float
    source: str | None
    validation_status: str
    validation_messages: list[str] = Field(default_factory=list)
    suggestions: list[SuggestionResponse] = Field(default_factory=list)


class MappingResponse(BaseModel):
    """Fields of one form filled from a publication."""

    form_id: str
    fields: list[MappedFieldResponse]
    mapped_count: int
    total_fields: int
    unmapped_fields: list[str]
    overall_confidence: float
    errors: list[str] = Field(default_factory=list)
    processing_time_ms: float = 0.0


class ValidationResultResponse(BaseModel):
    """Response schema for a validation check result."""

    field_name: str
    is_valid: bool
    message: str
    rule_name: str


class IssueResponse(BaseModel):
    kind: str
    severity: str
    field: str
    message: str
    suggestions: list[str] = Field(default_factory=list)
    auto_fixable: bool = False


class ReviewResponse(BaseModel):
    """Approval readiness of a mapping."""

    score: float
    is_valid: bool
    ready_for_approval: bool
    issues: list[IssueResponse]
    recommendations: list[str] = Field(default_factory=list)


class MapRequest(BaseModel):
    """Text to extract from and map onto a form."""

    text: str
    form_id: str | None = None
    correct: bool = True


class MapResponse(BaseModel):
    """Extraction, mapping and review of a text."""

    success: bool
    corrected_text: str
    publication: PublicationResponse
    mapping: MappingResponse
    validation: list[ValidationResultResponse]
    review: ReviewResponse


class ExtractionResponse(BaseModel):
    """Response schema for a document extraction request."""

    success: bool
    document_id: str
    filename: str
    page_count: int
    failed_pages: list[int] = Field(default_factory=list)
    language: LanguageResponse
    raw_text: str
    corrected_text: str
    ocr_confidence: float
    publication: PublicationResponse
    mapping: MappingResponse
    validation: list[ValidationResultResponse]
    review: ReviewResponse
    warnings: list[str] = Field(default_factory=list)
    processing_time_ms: float


class BatchItemResponse(BaseModel):
    """Response schema for a single item in a batch extraction."""

    filename: str
    result: ExtractionResponse | None = None
    error: str | None = None


class BatchExtractionResponse(BaseModel):
    """Response schema for batch extraction of multiple documents."""

    success: bool
    total_documents: int
    successful: int
    failed: int
    results: list[BatchItemResponse]


class FormFieldInfo(BaseModel):
    name: str
    label: str
    type: str
    required: bool


class FormInfo(BaseModel):
    """A form schema that documents can be mapped onto."""

    form_id: str
    name: str
    description: str
    fields: list[FormFieldInfo]


class FormsResponse(BaseModel):
    forms: list[FormInfo]


class ApprovalCreateRequest(BaseModel):
    """A mapped document submitted for approval."""

    item_type: str
    title: str
    data: dict[str, Any]
    priority: Priority = Priority.MEDIUM
    submitted_by: str | None = None
    description: str | None = None
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    due_date: datetime | None = None


class ApprovalActionRequest(BaseModel):
    """Reviewer action on an approval item."""

    actor: str
    comment: str | None = None


class RejectRequest(BaseModel):
    actor: str
    reason: str


class ChangesRequest(BaseModel):
    actor: str
    notes: str


class ResubmitRequest(BaseModel):
    """Corrected field values for an item sent back for changes."""

    actor: str
    data: dict[str, Any]
    comment: str | None = None


class AssignRequest(BaseModel):
    reviewer: str


class BatchApproveRequest(BaseModel):
    item_ids: list[str]
    actor: str
    comment: str | None = None


class HistoryResponse(BaseModel):
    action: str
    actor: str | None
    previous_status: ApprovalStatus | None
    new_status: ApprovalStatus
    comment: str | None
    timestamp: datetime


class ApprovalItemResponse(BaseModel):
    """An approval item and its history."""

    id: str
    item_type: str
    title: str
    description: str | None
    data: dict[str, Any]
    original_data: dict[str, Any]
    status: ApprovalStatus
    priority: Priority
    submitted_by: str | None
    assigned_to: str | None
    confidence: float | None
    created_at: datetime
    updated_at: datetime
    due_date: datetime | None
    approved_at: datetime | None
    approved_by: str | None
    rejection_reason: str | None
    modification_notes: str | None
    history: list[HistoryResponse]


class BatchApproveResponse(BaseModel):
    approved: list[str]
    errors: dict[str, str]


class ApprovalStatsResponse(BaseModel):
    total: int
    by_status: dict[str, int]
    average_confidence: float | None
    pending_high_priority: int
    overdue: int


class HealthResponse(BaseModel):
    """Response schema for the health check endpoint."""

    status: str
    version: str
    tesseract_available: bool
    default_languages: str
