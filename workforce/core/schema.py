from __future__ import annotations

from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from workforce.domain import BatchUndoResult, CircularBatch, Document, Role
from workforce.extractors.filename import ClassificationResult


class ApiModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class EmployeeOut(ApiModel):
    id: int
    company_id: int
    full_name: str
    email: str
    role: Role


class DocumentOut(ApiModel):
    id: int
    owner_user_id: int | None
    file_name: str
    original_name: str
    file_size: int
    mime_type: str | None = None
    document_type: str
    requires_signature: bool
    batch_id: str | None = None
    uploaded_by: int
    created_at: datetime
    is_viewed: bool
    is_accepted: bool
    viewed_at: datetime | None = None
    accepted_at: datetime | None = None
    signed_at: datetime | None = None
    is_complete: bool
    is_circular: bool

    @classmethod
    def from_document(cls, document: Document) -> "DocumentOut":
        status = document.status
        return cls(
            id=document.id,
            owner_user_id=document.owner_user_id,
            file_name=document.file_name,
            original_name=document.original_name,
            file_size=document.file_size,
            mime_type=document.mime_type,
            document_type=document.document_type,
            requires_signature=document.requires_signature,
            batch_id=document.batch_id,
            uploaded_by=document.uploaded_by,
            created_at=document.created_at,
            is_viewed=status.is_viewed,
            is_accepted=status.is_accepted,
            viewed_at=status.viewed_at,
            accepted_at=status.accepted_at,
            signed_at=status.signed_at,
            is_complete=document.is_complete,
            is_circular=document.is_circular,
        )


class ClassificationOut(ApiModel):
    file_name: str
    document_type: str
    document_type_name: str
    type_detected: bool
    year: int
    month: int | None = None
    month_name: str | None = None
    confidence: Literal["high", "medium", "low"]
    requires_confirmation: bool
    employee_id: int | None = None
    employee_name: str | None = None
    employee_ambiguous: bool = False
    candidates: list[int] = Field(default_factory=list)
    suggested_name: str | None = None

    @classmethod
    def from_result(cls, result: ClassificationResult) -> "ClassificationOut":
        return cls(
            file_name=result.file_name,
            document_type=result.document_type.value,
            document_type_name=result.document_type.display_name,
            type_detected=result.type_detected,
            year=result.detected_date.year,
            month=result.detected_date.month,
            month_name=result.detected_date.month_name,
            confidence=result.confidence.value,
            requires_confirmation=result.requires_confirmation,
            employee_id=result.employee.id if result.employee else None,
            employee_name=result.employee.full_name if result.employee else None,
            employee_ambiguous=result.employee_ambiguous,
            candidates=list(result.candidates),
            suggested_name=result.suggested_name,
        )


class CircularBatchOut(ApiModel):
    batch_id: str
    artifact_id: str
    document_ids: list[int]

    @classmethod
    def from_batch(cls, batch: CircularBatch) -> "CircularBatchOut":
        return cls(batch_id=batch.batch_id, artifact_id=batch.artifact_id, document_ids=list(batch.document_ids))


class BatchUndoOut(ApiModel):
    deleted: list[int]
    failed: dict[int, str]
    total: int
    is_partial: bool

    @classmethod
    def from_result(cls, result: BatchUndoResult) -> "BatchUndoOut":
        return cls(
            deleted=list(result.deleted),
            failed=dict(result.failed),
            total=result.total,
            is_partial=result.is_partial,
        )


class BreakOut(ApiModel):
    id: int
    start: datetime
    end: datetime | None = None


class WorkSessionOut(ApiModel):
    id: int
    user_id: int
    clock_in: datetime
    clock_out: datetime | None = None
    is_active: bool
    breaks: list[BreakOut] = Field(default_factory=list)


class MessageOut(ApiModel):
    id: int
    sender_id: int
    receiver_id: int
    subject: str | None = None
    content: str
    is_read: bool
    created_at: datetime


class VacationRequestOut(ApiModel):
    id: int
    user_id: int
    start_date: date
    end_date: date
    reason: str | None = None
    status: str
    admin_comment: str | None = None
    created_at: datetime


class ModificationRequestOut(ApiModel):
    id: int
    user_id: int
    work_date: date
    requested_clock_in: datetime | None = None
    requested_clock_out: datetime | None = None
    reason: str | None = None
    status: str
    created_at: datetime


class DocumentRequestOut(ApiModel):
    id: int
    user_id: int
    document_type: str
    message: str | None = None
    is_completed: bool
    created_at: datetime


class WorkReportOut(ApiModel):
    id: int
    user_id: int
    location: str
    description: str
    created_at: datetime


class ReminderOut(ApiModel):
    id: int
    title: str
    assigned_user_ids: list[int]
    completed_by: list[int]
    all_completed: bool


class DashboardSummary(ApiModel):
    employees: list[EmployeeOut]
    active_sessions: list[WorkSessionOut]
    recent_sessions: list[WorkSessionOut]
    messages: list[MessageOut]
    vacation_requests: list[VacationRequestOut]
    document_requests: list[DocumentRequestOut]
    unread_messages: int
    pending_vacation_requests: int
    pending_modification_requests: int


class EventFrame(BaseModel):
    """Wire shape of a frame received on the event channel."""

    model_config = ConfigDict(populate_by_name=True)

    type: str = Field(min_length=1)
    company_id: int | None = Field(default=None, alias="companyId")
    data: dict[str, Any] | None = None
    message: str | None = None
