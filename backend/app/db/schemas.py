"""
Pydantic validation schemas

Field names are snake_case in Python and camelCase on the wire, matching the
web client's payloads.
"""
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from datetime import datetime
from uuid import UUID

from app.db.models import (
    CasePriority,
    CaseStage,
    CaseStatus,
    CaseType,
)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Case Schemas
# ============================================================================

class CaseRecord(CamelModel):
    """
    Canonical in-memory case. Both the ``cases`` table and the legacy
    ``case_trackers`` table are mapped into this shape; ``source`` records
    which one a row came from.
    """
    id: UUID
    title: str
    cnr_number: Optional[str] = None
    case_number: Optional[str] = None
    case_type: CaseType = CaseType.GENERAL
    court: Optional[str] = None
    judge: Optional[str] = None
    petitioner: Optional[str] = None
    respondent: Optional[str] = None
    client_id: Optional[str] = None
    client_name: Optional[str] = None
    status: CaseStatus = CaseStatus.OPEN
    stage: Optional[CaseStage] = None
    priority: CasePriority = CasePriority.MEDIUM
    filing_date: Optional[datetime] = None
    next_hearing: Optional[datetime] = None
    tags: List[str] = Field(default_factory=list)
    notes: Optional[str] = None
    ai_summary: Optional[str] = None
    ai_prediction: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Read-only projections, recomputed on every load
    activities_count: int = 0
    hearings_count: int = 0
    documents_count: int = 0

    source: Literal["cases", "case_tracker"] = "cases"


class CaseCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    cnr_number: Optional[str] = Field(None, max_length=32)
    case_number: Optional[str] = Field(None, max_length=100)
    case_type: CaseType = CaseType.GENERAL
    court: Optional[str] = Field(None, max_length=255)
    judge: Optional[str] = Field(None, max_length=255)
    petitioner: Optional[str] = None
    respondent: Optional[str] = None
    client_id: Optional[str] = Field(None, max_length=64)
    client_name: Optional[str] = Field(None, max_length=255)
    status: CaseStatus = CaseStatus.OPEN
    stage: Optional[CaseStage] = None
    priority: CasePriority = CasePriority.MEDIUM
    filing_date: Optional[datetime] = None
    next_hearing: Optional[datetime] = None
    tags: List[str] = Field(default_factory=list)
    notes: Optional[str] = None


class CaseUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    cnr_number: Optional[str] = Field(None, max_length=32)
    case_number: Optional[str] = Field(None, max_length=100)
    case_type: Optional[CaseType] = None
    court: Optional[str] = Field(None, max_length=255)
    judge: Optional[str] = Field(None, max_length=255)
    petitioner: Optional[str] = None
    respondent: Optional[str] = None
    client_id: Optional[str] = Field(None, max_length=64)
    client_name: Optional[str] = Field(None, max_length=255)
    status: Optional[CaseStatus] = None
    stage: Optional[CaseStage] = None
    priority: Optional[CasePriority] = None
    filing_date: Optional[datetime] = None
    next_hearing: Optional[datetime] = None
    tags: Optional[List[str]] = None
    notes: Optional[str] = None
    ai_summary: Optional[str] = None
    ai_prediction: Optional[str] = None


class ActiveCaseRequest(CamelModel):
    case_id: UUID


class NoteCreate(CamelModel):
    note: str = Field(..., min_length=1, max_length=10000)


# ============================================================================
# Feature Schemas
# ============================================================================

DraftInput = Annotated[str, Field(max_length=2000)]


class DraftCreate(CamelModel):
    type: str = Field(..., min_length=1, max_length=50)
    inputs: Optional[Dict[str, DraftInput]] = None
    form_data: Optional[Dict[str, DraftInput]] = None
    title: Optional[str] = Field(None, max_length=255)
    case_id: Optional[UUID] = None


class NoticeCreate(CamelModel):
    """Required-field checks happen in the endpoint to keep the client's error text."""
    notice_type: Optional[str] = Field(None, max_length=50)
    recipient: Optional[str] = Field(None, max_length=255)
    recipient_address: Optional[str] = Field(None, max_length=1000)
    subject: Optional[str] = Field(None, max_length=255)
    details: Optional[str] = Field(None, max_length=5000)
    amount: Optional[Union[float, str]] = None
    due_date: Optional[str] = Field(None, max_length=50)
    case_id: Optional[UUID] = None


class ResearchCreate(CamelModel):
    query: Optional[str] = None
    case_id: Optional[UUID] = None


class SummaryCreate(CamelModel):
    text: str = Field(..., min_length=10, max_length=50000)
    title: str = Field(..., min_length=1, max_length=200)
    case_id: Optional[UUID] = None


class ChatRequest(CamelModel):
    question: str = Field(..., min_length=1, max_length=4000)
    case_id: Optional[UUID] = None


# ============================================================================
# Derived views
# ============================================================================

class CaseHealthResponse(CamelModel):
    ok: bool = True
    documents_generated: int
    ai_assists: int
    files_uploaded: int
    timeline_entries: int
    last_activity: Optional[datetime] = None
    estimated_time_saved: int
    health_score: int


class TimelineEntry(CamelModel):
    id: UUID
    type: str
    feature: Optional[str] = None
    title: str
    content: str
    metadata: Optional[Dict[str, Any]] = None
    reference_id: Optional[str] = None
    category: str
    icon: str
    color: str
    created_at: datetime
    is_last: bool = False
