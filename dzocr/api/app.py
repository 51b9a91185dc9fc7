"""FastAPI application for Algerian legal document OCR.

Endpoints correct OCR text, detect its language, extract and map scanned
documents onto forms, and drive the manual approval queue.
"""

import shutil
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, TypeVar

from fastapi import FastAPI, File, HTTPException, Query, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from PIL import UnidentifiedImageError

from dzocr import __version__
from dzocr.approval.workflow import (
    ApprovalItem,
    ApprovalQueue,
    ApprovalStatus,
    InvalidTransitionError,
    ItemNotFoundError,
    Priority,
)
from dzocr.correction.pipeline import CorrectionResult, TextCorrector
from dzocr.extraction.legal_entities import LegalEntityExtractor, StructuredPublication
from dzocr.language.detector import LanguageReport, select_ocr_profile
from dzocr.mapping.mapper import FieldMapper, MappingResult, build_mapper
from dzocr.ocr.document_processor import DocumentProcessor
from dzocr.utils.config import AppConfig, load_config
from dzocr.utils.logger import get_logger
from dzocr.validation.review import MappingReviewer, ReviewReport
from dzocr.validation.rules_engine import RulesEngine, ValidationReport

from .schemas import (
    ApprovalActionRequest,
    ApprovalCreateRequest,
    ApprovalItemResponse,
    ApprovalStatsResponse,
    AssignRequest,
    BatchApproveRequest,
    BatchApproveResponse,
    BatchExtractionResponse,
    BatchItemResponse,
    ChangesRequest,
    CorrectionResponse,
    EntityResponse,
    ExtractionResponse,
    FormFieldInfo,
    FormInfo,
    FormsResponse,
    HealthResponse,
    IssueResponse,
    LanguageResponse,
    MappedFieldResponse,
    MappingResponse,
    MapRequest,
    MapResponse,
    PublicationResponse,
    RejectRequest,
    ResubmitRequest,
    ReviewResponse,
    SuggestionResponse,
    TextRequest,
    ValidationResultResponse,
)

logger = get_logger(__name__)

T = TypeVar("T")

app = FastAPI(
    title="DZ Legal OCR API",
    description="OCR correction, extraction and approval of Algerian legal documents",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_ALLOWED_CONTENT_TYPES = {
    "image/png",
    "image/jpeg",
    "image/tiff",
    "image/bmp",
    "image/webp",
    "application/pdf",
    "application/octet-stream",
}

approval_queue = ApprovalQueue()


@dataclass
class Components:
    """Processing components shared by the extraction endpoints."""

    config: AppConfig
    processor: DocumentProcessor
    corrector: TextCorrector
    extractor: LegalEntityExtractor
    mapper: FieldMapper
    rules_engine: RulesEngine
    reviewer: MappingReviewer


def _get_components() -> Components:
    """Initialize and return the processing components."""
    config = load_config()
    corrector = TextCorrector(config.correction, config.language)
    return Components(
        config=config,
        processor=DocumentProcessor(config, corrector=corrector),
        corrector=corrector,
        extractor=LegalEntityExtractor(detector=corrector.detector),
        mapper=build_mapper(config.mapping),
        rules_engine=RulesEngine(Path(config.validation.rules_path)),
        reviewer=MappingReviewer(
            confidence_threshold=config.validation.confidence_threshold,
            approval_score=config.validation.approval_score,
        ),
    )


def _get_queue() -> ApprovalQueue:
    return approval_queue


def _language_response(report: LanguageReport, profile: str | None = None) -> LanguageResponse:
    return LanguageResponse(**report.to_dict(), ocr_profile=profile)


def _correction_response(result: CorrectionResult) -> CorrectionResponse:
    data = result.to_dict()
    data["language"] = _language_response(result.language)
    return CorrectionResponse(**data)


def _publication_response(publication: StructuredPublication) -> PublicationResponse:
    return PublicationResponse(
        document_type=publication.document_type,
        title=publication.title,
        language=publication.language,
        number=publication.number,
        date=publication.date,
        institution=publication.institution,
        subject=publication.subject,
        jo_number=publication.jo_number,
        jo_date=publication.jo_date,
        is_official=publication.is_official,
        confidence=round(publication.confidence, 3),
        article_count=len(publication.articles),
        entities=[
            EntityResponse(
                type=e.type,
                value=e.value,
                confidence=round(e.confidence, 3),
                start=e.start,
                end=e.end,
                referenced=e.referenced,
            )
            for e in publication.entities
        ],
    )


def _mapping_response(mapping: MappingResult) -> MappingResponse:
    return MappingResponse(
        form_id=mapping.form_id,
        fields=[
            MappedFieldResponse(
                name=f.name,
                label=f.label,
                value=f.value,
                confidence=f.confidence,
                source=f.source,
                validation_status=f.validation_status,
                validation_messages=f.validation_messages,
                suggestions=[
                    SuggestionResponse(value=s.value, confidence=s.confidence, source=s.source)
                    for s in f.suggestions
                ],
            )
            for f in mapping.fields
        ],
        mapped_count=mapping.mapped_count,
        total_fields=mapping.total_fields,
        unmapped_fields=mapping.unmapped_fields,
        overall_confidence=round(mapping.overall_confidence, 3),
        errors=mapping.errors,
        processing_time_ms=mapping.processing_time_ms,
    )


def _validation_response(report: ValidationReport) -> list[ValidationResultResponse]:
    return [
        ValidationResultResponse(
            field_name=r.field_name,
            is_valid=r.is_valid,
            message=r.message,
            rule_name=r.rule_name,
        )
        for r in report.results
    ]


def _review_response(review: ReviewReport) -> ReviewResponse:
    return ReviewResponse(
        score=review.score,
        is_valid=review.is_valid,
        ready_for_approval=review.ready_for_approval,
        issues=[
            IssueResponse(
                kind=i.kind.value,
                severity=i.severity,
                field=i.field,
                message=i.message,
                suggestions=i.suggestions,
                auto_fixable=i.auto_fixable,
            )
            for i in review.issues
        ],
        recommendations=review.recommendations,
    )


def _analyze(
    components: Components, text: str, form_id: str | None
) -> tuple[StructuredPublication, MappingResult, ValidationReport, ReviewReport]:
    """Extract, map, validate and review a corrected text.

    Raises:
        HTTPException: 404 if the form is unknown.
    """
    publication = components.extractor.extract(text)
    try:
        mapping = components.mapper.map(publication, form_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=f"Unknown form: {form_id}") from exc

    rules_key = (
        publication.document_type
        if mapping.form_id == components.config.mapping.default_form
        else mapping.form_id
    )
    validation = components.rules_engine.validate(
        mapping.as_dict(), rules_key, mapping.confidences()
    )
    review = components.reviewer.review(mapping, text)
    return publication, mapping, validation, review


def _approval_call(action: Callable[[], T]) -> T:
    """Run a queue action, translating workflow errors to HTTP errors."""
    try:
        return action()
    except ItemNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except InvalidTransitionError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _item_response(item: ApprovalItem) -> ApprovalItemResponse:
    return ApprovalItemResponse.model_validate(item, from_attributes=True)


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Return system health status."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        tesseract_available=shutil.which("tesseract") is not None,
        default_languages=load_config().ocr.languages,
    )


@app.post("/correct", response_model=CorrectionResponse)
async def correct_text(request: TextRequest) -> CorrectionResponse:
    """Run the correction pipeline on raw OCR text."""
    components = _get_components()
    return _correction_response(components.corrector.correct(request.text))


@app.post("/language", response_model=LanguageResponse)
async def detect_language(request: TextRequest) -> LanguageResponse:
    """Classify a text as Arabic, French or mixed."""
    components = _get_components()
    report = components.corrector.detector.detect(request.text)
    return _language_response(report, select_ocr_profile(request.text))


@app.post("/map", response_model=MapResponse)
async def map_text(request: MapRequest) -> MapResponse:
    """Extract legal data from a text and map it onto a form."""
    components = _get_components()
    text = (
        components.corrector.correct(request.text).corrected_text
        if request.correct
        else request.text
    )
    publication, mapping, validation, review = _analyze(components, text, request.form_id)
    return MapResponse(
        success=True,
        corrected_text=text,
        publication=_publication_response(publication),
        mapping=_mapping_response(mapping),
        validation=_validation_response(validation),
        review=_review_response(review),
    )


@app.post("/extract", response_model=ExtractionResponse)
async def extract_document(
    file: Annotated[UploadFile, File(...)],
    form_id: Annotated[str | None, Query()] = None,
) -> ExtractionResponse:
    """OCR an uploaded document, then extract and map its legal data.

    Args:
        file: Uploaded document (PDF, PNG, JPEG, TIFF).
        form_id: Target form. Matched from the text when omitted.

    Returns:
        OCR text, extracted publication, mapped form and its review.
    """
    start_time = time.time()

    if file.content_type and file.content_type not in _ALLOWED_CONTENT_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type: {file.content_type}",
        )

    try:
        components = _get_components()
        content = await file.read()
        doc_result = components.processor.process(content, file.filename or "document")
        publication, mapping, validation, review = _analyze(
            components, doc_result.combined_text, form_id
        )
        return ExtractionResponse(
            success=True,
            document_id=str(uuid.uuid4()),
            filename=file.filename or "document",
            page_count=doc_result.page_count,
            failed_pages=doc_result.failed_pages,
            language=_language_response(doc_result.language),
            raw_text=doc_result.raw_text,
            corrected_text=doc_result.combined_text,
            ocr_confidence=round(doc_result.confidence, 3),
            publication=_publication_response(publication),
            mapping=_mapping_response(mapping),
            validation=_validation_response(validation),
            review=_review_response(review),
            warnings=doc_result.warnings,
            processing_time_ms=(time.time() - start_time) * 1000,
        )

    except HTTPException:
        raise
    except UnidentifiedImageError as exc:
        raise HTTPException(status_code=400, detail=f"Unreadable image: {exc}") from exc
    except Exception as exc:
        logger.error("Extraction failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@app.post("/extract/batch", response_model=BatchExtractionResponse)
async def extract_batch(
    files: Annotated[list[UploadFile], File(...)],
    form_id: Annotated[str | None, Query()] = None,
) -> BatchExtractionResponse:
    """Extract several documents, reporting failures per file."""
    results: list[BatchItemResponse] = []
    successful = 0

    for file in files:
        name = file.filename or "unknown"
        try:
            result = await extract_document(file, form_id)
            results.append(BatchItemResponse(filename=name, result=result))
            successful += 1
        except HTTPException as exc:
            results.append(BatchItemResponse(filename=name, error=str(exc.detail)))

    return BatchExtractionResponse(
        success=successful > 0,
        total_documents=len(files),
        successful=successful,
        failed=len(files) - successful,
        results=results,
    )


@app.get("/forms", response_model=FormsResponse)
async def list_forms() -> FormsResponse:
    """List the forms documents can be mapped onto."""
    components = _get_components()
    return FormsResponse(
        forms=[
            FormInfo(
                form_id=form.form_id,
                name=form.name,
                description=form.description,
                fields=[
                    FormFieldInfo(name=f.name, label=f.label, type=f.type, required=f.required)
                    for f in form.fields
                ],
            )
            for form in components.mapper.registry.list_forms()
        ]
    )


@app.post("/approvals", response_model=ApprovalItemResponse, status_code=201)
async def submit_for_approval(request: ApprovalCreateRequest) -> ApprovalItemResponse:
    """Add a mapped document to the approval queue."""
    queue = _get_queue()
    item = _approval_call(
        lambda: queue.submit(
            item_type=request.item_type,
            title=request.title,
            data=request.data,
            priority=request.priority,
            submitted_by=request.submitted_by,
            description=request.description,
            confidence=request.confidence,
            due_date=request.due_date,
        )
    )
    return _item_response(item)


@app.get("/approvals", response_model=list[ApprovalItemResponse])
async def list_approvals(
    status: Annotated[ApprovalStatus | None, Query()] = None,
    priority: Annotated[Priority | None, Query()] = None,
    assigned_to: Annotated[str | None, Query()] = None,
    item_type: Annotated[str | None, Query()] = None,
) -> list[ApprovalItemResponse]:
    """List approval items, most urgent and oldest first."""
    items = _get_queue().list_items(
        status=status, priority=priority, assigned_to=assigned_to, item_type=item_type
    )
    return [_item_response(item) for item in items]


@app.get("/approvals/stats", response_model=ApprovalStatsResponse)
async def approval_stats() -> ApprovalStatsResponse:
    return ApprovalStatsResponse(**_get_queue().stats())


@app.post("/approvals/batch-approve", response_model=BatchApproveResponse)
async def batch_approve(request: BatchApproveRequest) -> BatchApproveResponse:
    result = _get_queue().batch_approve(request.item_ids, request.actor, request.comment)
    return BatchApproveResponse(approved=result.approved, errors=result.errors)


@app.get("/approvals/{item_id}", response_model=ApprovalItemResponse)
async def get_approval(item_id: str) -> ApprovalItemResponse:
    queue = _get_queue()
    return _item_response(_approval_call(lambda: queue.get(item_id)))


@app.post("/approvals/{item_id}/assign", response_model=ApprovalItemResponse)
async def assign_approval(item_id: str, request: AssignRequest) -> ApprovalItemResponse:
    queue = _get_queue()
    return _item_response(_approval_call(lambda: queue.assign(item_id, request.reviewer)))


@app.post("/approvals/{item_id}/approve", response_model=ApprovalItemResponse)
async def approve_item(item_id: str, request: ApprovalActionRequest) -> ApprovalItemResponse:
    queue = _get_queue()
    return _item_response(
        _approval_call(lambda: queue.approve(item_id, request.actor, request.comment))
    )


@app.post("/approvals/{item_id}/reject", response_model=ApprovalItemResponse)
async def reject_item(item_id: str, request: RejectRequest) -> ApprovalItemResponse:
    queue = _get_queue()
    return _item_response(
        _approval_call(lambda: queue.reject(item_id, request.actor, request.reason))
    )


@app.post("/approvals/{item_id}/request-changes", response_model=ApprovalItemResponse)
async def request_changes(item_id: str, request: ChangesRequest) -> ApprovalItemResponse:
    queue = _get_queue()
    return _item_response(
        _approval_call(
            lambda: queue.request_modifications(item_id, request.actor, request.notes)
        )
    )


@app.post("/approvals/{item_id}/resubmit", response_model=ApprovalItemResponse)
async def resubmit_item(item_id: str, request: ResubmitRequest) -> ApprovalItemResponse:
    """Return a modified item to the queue with corrected data."""
    queue = _get_queue()
    return _item_response(
        _approval_call(
            lambda: queue.resubmit(item_id, request.actor, request.data, request.comment)
        )
    )
