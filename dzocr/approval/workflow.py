"""In-memory approval queue for mapped legal documents.

Items move from submission through review to a final decision, and every
transition is recorded in the item history. State lives in the process
only.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any

from dzocr.utils.logger import get_logger
from dzocr.validation.review import ReviewReport

logger = get_logger(__name__)


class ApprovalStatus(StrEnum):
    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    MODIFIED = "modified"


class Priority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


PRIORITY_RANK = {Priority.URGENT: 3, Priority.HIGH: 2, Priority.MEDIUM: 1, Priority.LOW: 0}
FINAL_STATUSES = frozenset({ApprovalStatus.APPROVED, ApprovalStatus.REJECTED})
DECIDABLE_STATUSES = frozenset({ApprovalStatus.PENDING, ApprovalStatus.UNDER_REVIEW})


class ApprovalError(ValueError):
    """Base error for approval workflow operations."""


class ItemNotFoundError(ApprovalError, KeyError):
    """Raised when an approval item id is unknown."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class InvalidTransitionError(ApprovalError):
    """Raised when an action is not allowed in the item's current status."""


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ApprovalHistory:
    """One recorded action on an approval item."""

    action: str
    actor: str | None
    previous_status: ApprovalStatus | None
    new_status: ApprovalStatus
    comment: str | None = None
    timestamp: datetime = field(default_factory=_now)


@dataclass
class ApprovalItem:
    """A mapped document waiting for, or having received, a decision."""

    id: str
    item_type: str
    title: str
    data: dict[str, Any]
    status: ApprovalStatus = ApprovalStatus.PENDING
    priority: Priority = Priority.MEDIUM
    description: str | None = None
    original_data: dict[str, Any] = field(default_factory=dict)
    submitted_by: str | None = None
    assigned_to: str | None = None
    confidence: float | None = None
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)
    due_date: datetime | None = None
    approved_at: datetime | None = None
    approved_by: str | None = None
    rejection_reason: str | None = None
    modification_notes: str | None = None
    history: list[ApprovalHistory] = field(default_factory=list)

    @property
    def is_final(self) -> bool:
        return self.status in FINAL_STATUSES


@dataclass
class BatchResult:
    """Outcome of a batch approval."""

    approved: list[str] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)


class ApprovalQueue:
    """Manual approval workflow over an in-memory store."""

    def __init__(self) -> None:
        self._items: dict[str, ApprovalItem] = {}

    def __len__(self) -> int:
        return len(self._items)

    def submit(
        self,
        item_type: str,
        title: str,
        data: dict[str, Any],
        priority: Priority | str = Priority.MEDIUM,
        submitted_by: str | None = None,
        description: str | None = None,
        confidence: float | None = None,
        review: ReviewReport | None = None,
        due_date: datetime | None = None,
    ) -> ApprovalItem:
        """Add an item to the queue.

        Items whose review is not ready for approval go straight to
        ``under_review``.

        Args:
            item_type: Kind of item, for example the form id.
            title: Short title shown to reviewers.
            data: Mapped field values.
            priority: Queue priority.
            submitted_by: Submitter id.
            description: Optional free text.
            confidence: Overall mapping confidence.
            review: Review report of the mapping.
            due_date: Optional decision deadline.

        Returns:
            The new item.

        Raises:
            ValueError: If the title is empty or the priority unknown.
        """
        if not title or not title.strip():
            raise ValueError("Approval item title must not be empty")

        status = ApprovalStatus.PENDING
        if review is not None and not review.ready_for_approval:
            status = ApprovalStatus.UNDER_REVIEW

        item = ApprovalItem(
            id=str(uuid.uuid4()),
            item_type=item_type,
            title=title.strip(),
            data=dict(data),
            original_data=dict(data),
            status=status,
            priority=Priority(priority),
            description=description,
            submitted_by=submitted_by,
            confidence=confidence,
            due_date=due_date,
        )
        self._record(item, "submitted", submitted_by, None, status)
        self._items[item.id] = item
        logger.info("Submitted approval item %s (%s, %s)", item.id, item_type, status.value)
        return item

    def get(self, item_id: str) -> ApprovalItem:
        """Return an item by id.

        Raises:
            ItemNotFoundError: If the id is unknown.
        """
        try:
            return self._items[item_id]
        except KeyError:
            raise ItemNotFoundError(f"Approval item not found: {item_id}") from None

    def list_items(
        self,
        status: ApprovalStatus | str | None = None,
        priority: Priority | str | None = None,
        assigned_to: str | None = None,
        submitted_by: str | None = None,
        item_type: str | None = None,
    ) -> list[ApprovalItem]:
        """List items, most urgent first, then oldest first."""
        items = [
            item
            for item in self._items.values()
            if (status is None or item.status == ApprovalStatus(status))
            and (priority is None or item.priority == Priority(priority))
            and (assigned_to is None or item.assigned_to == assigned_to)
            and (submitted_by is None or item.submitted_by == submitted_by)
            and (item_type is None or item.item_type == item_type)
        ]
        return sorted(items, key=lambda i: (-PRIORITY_RANK[i.priority], i.created_at))

    def assign(self, item_id: str, reviewer: str) -> ApprovalItem:
        """Assign a reviewer and move the item under review."""
        item = self.get(item_id)
        self._require(item, DECIDABLE_STATUSES, "assign")
        item.assigned_to = reviewer
        self._transition(item, "assigned", reviewer, ApprovalStatus.UNDER_REVIEW)
        return item

    def approve(
        self, item_id: str, approver: str, comment: str | None = None
    ) -> ApprovalItem:
        """Approve an item.

        Raises:
            ItemNotFoundError: If the id is unknown.
            InvalidTransitionError: If the item is final or awaiting changes.
        """
        item = self.get(item_id)
        self._require(item, DECIDABLE_STATUSES, "approve")
        item.approved_by = approver
        item.approved_at = _now()
        self._transition(item, "approved", approver, ApprovalStatus.APPROVED, comment)
        return item

    def reject(self, item_id: str, reviewer: str, reason: str) -> ApprovalItem:
        """Reject an item with a mandatory reason."""
        if not reason or not reason.strip():
            raise ValueError("A rejection reason is required")
        item = self.get(item_id)
        self._require(item, DECIDABLE_STATUSES, "reject")
        item.rejection_reason = reason.strip()
        self._transition(item, "rejected", reviewer, ApprovalStatus.REJECTED, reason)
        return item

    def request_modifications(
        self, item_id: str, reviewer: str, notes: str
    ) -> ApprovalItem:
        """Send an item back to its submitter with modification notes."""
        if not notes or not notes.strip():
            raise ValueError("Modification notes are required")
        item = self.get(item_id)
        self._require(item, DECIDABLE_STATUSES, "request modifications on")
        item.modification_notes = notes.strip()
        self._transition(
            item, "modifications_requested", reviewer, ApprovalStatus.MODIFIED, notes
        )
        return item

    def resubmit(
        self, item_id: str, actor: str, data: dict[str, Any], comment: str | None = None
    ) -> ApprovalItem:
        """Return a modified item to the queue with corrected data."""
        item = self.get(item_id)
        self._require(item, frozenset({ApprovalStatus.MODIFIED}), "resubmit")
        item.data = dict(data)
        self._transition(item, "resubmitted", actor, ApprovalStatus.PENDING, comment)
        return item

    def batch_approve(
        self, item_ids: list[str], approver: str, comment: str | None = None
    ) -> BatchResult:
        """Approve several items, collecting per-item failures."""
        result = BatchResult()
        for item_id in item_ids:
            try:
                self.approve(item_id, approver, comment)
                result.approved.append(item_id)
            except ApprovalError as exc:
                result.errors[item_id] = str(exc)
        logger.info(
            "Batch approval: %d approved, %d failed",
            len(result.approved),
            len(result.errors),
        )
        return result

    def history(self, item_id: str) -> list[ApprovalHistory]:
        return list(self.get(item_id).history)

    def stats(self) -> dict[str, Any]:
        """Queue diagnostics: counts per status, confidence and urgency."""
        items = list(self._items.values())
        counts = {status.value: 0 for status in ApprovalStatus}
        for item in items:
            counts[item.status.value] += 1

        confidences = [i.confidence for i in items if i.confidence is not None]
        now = _now()
        open_items = [i for i in items if not i.is_final]
        return {
            "total": len(items),
            "by_status": counts,
            "average_confidence": (
                round(sum(confidences) / len(confidences), 3) if confidences else None
            ),
            "pending_high_priority": sum(
                1 for i in open_items if PRIORITY_RANK[i.priority] >= PRIORITY_RANK[Priority.HIGH]
            ),
            "overdue": sum(1 for i in open_items if i.due_date is not None and i.due_date < now),
        }

    @staticmethod
    def _require(
        item: ApprovalItem, allowed: frozenset[ApprovalStatus], action: str
    ) -> None:
        if item.status not in allowed:
            raise InvalidTransitionError(
                f"Cannot {action} item {item.id} in status '{item.status.value}'"
            )

    def _transition(
        self,
        item: ApprovalItem,
        action: str,
        actor: str | None,
        new_status: ApprovalStatus,
        comment: str | None = None,
    ) -> None:
        previous = item.status
        item.status = new_status
        item.updated_at = _now()
        self._record(item, action, actor, previous, new_status, comment)
        logger.info(
            "Approval item %s: %s -> %s by %s",
            item.id,
            previous.value,
            new_status.value,
            actor,
        )

    @staticmethod
    def _record(
        item: ApprovalItem,
        action: str,
        actor: str | None,
        previous: ApprovalStatus | None,
        new_status: ApprovalStatus,
        comment: str | None = None,
    ) -> None:
        item.history.append(
            ApprovalHistory(
                action=action,
                actor=actor,
                previous_status=previous,
                new_status=new_status,
                comment=comment,
            )
        )
