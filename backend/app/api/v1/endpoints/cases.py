"""
Case management endpoints
"""
from typing import Any, Dict, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.v1.deps import get_active_case_store, get_current_user
from app.db.database import get_db
from app.db.models import CaseStatus, CaseType, User
from app.db.schemas import (
    ActiveCaseRequest,
    CaseCreate,
    CaseRecord,
    CaseUpdate,
    NoteCreate,
    TimelineEntry,
)
from app.services import case_repository, case_views
from app.services.active_case_service import ActiveCaseStore, clear_if_active, resolve_active_case
from app.services.case_activity_service import (
    list_activities,
    log_case_created,
    log_case_updated,
    log_hearing_scheduled,
    log_note_added,
    log_status_changed,
)
from app.services.timeline_service import group_by_day, iter_timeline
from app.utils.exceptions import CaseNotFoundError, PersistenceError, ValidationFailedError
from app.utils.validators import require_text

router = APIRouter()

LIFECYCLE_FIELDS = {"status", "next_hearing"}


def _case_out(case: Optional[CaseRecord]) -> Optional[Dict[str, Any]]:
    if case is None:
        return None
    return case.model_dump(mode="json", by_alias=True)


def _entry_out(entry: TimelineEntry) -> Dict[str, Any]:
    return entry.model_dump(mode="json", by_alias=True)


def _owned_or_404(db: Session, user: User, case_id: UUID) -> CaseRecord:
    case = case_repository.find_owned(db, user.id, case_id)
    if case is None:
        raise CaseNotFoundError(str(case_id))
    return case


# ============================================================================
# List & aggregate views
# ============================================================================

@router.get("")
def list_cases(
    search: Optional[str] = Query(None, description="Title, CNR or party name"),
    status: Optional[CaseStatus] = Query(None),
    case_type: Optional[CaseType] = Query(None, alias="caseType"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    All cases for the authenticated user, filtered in memory
    """
    cases = case_repository.load(db, current_user.id)
    filtered = case_views.apply_filters(cases, search=search, status=status, case_type=case_type)
    return {
        "ok": True,
        "cases": [_case_out(c) for c in filtered],
        "total": len(filtered),
        "source": cases[0].source if cases else case_repository.SOURCE_CASES,
    }


@router.get("/overview")
def cases_overview(
    current_user: User = Depends(get_current_user),
    store: ActiveCaseStore = Depends(get_active_case_store),
    db: Session = Depends(get_db)
):
    """Open / archived / urgent / upcoming-hearing views in one call"""
    cases = case_repository.load(db, current_user.id)
    summary = case_views.summarize(cases)
    payload = {
        name: [_case_out(c) for c in items]
        for name, items in summary.items()
        if name != "counts"
    }
    return {
        "ok": True,
        **payload,
        "counts": summary["counts"],
        "activeCase": _case_out(resolve_active_case(store, current_user, cases)),
    }


# ============================================================================
# Active case (session pointer)
# ============================================================================

@router.get("/active")
def get_active_case(
    current_user: User = Depends(get_current_user),
    store: ActiveCaseStore = Depends(get_active_case_store),
    db: Session = Depends(get_db)
):
    cases = case_repository.load(db, current_user.id)
    return {"ok": True, "case": _case_out(resolve_active_case(store, current_user, cases))}


@router.put("/active")
def set_active_case(
    request: ActiveCaseRequest,
    current_user: User = Depends(get_current_user),
    store: ActiveCaseStore = Depends(get_active_case_store),
    db: Session = Depends(get_db)
):
    case = _owned_or_404(db, current_user, request.case_id)
    if not store.set(current_user, str(case.id)):
        raise PersistenceError("Failed to save active case")
    return {"ok": True, "case": _case_out(case)}


@router.delete("/active")
def clear_active_case(
    current_user: User = Depends(get_current_user),
    store: ActiveCaseStore = Depends(get_active_case_store),
):
    if not store.set(current_user, None):
        raise PersistenceError("Failed to clear active case")
    return {"ok": True}


# ============================================================================
# CRUD
# ============================================================================

@router.post("", status_code=201)
def create_case(
    case_in: CaseCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    case = case_repository.create(db, current_user.id, case_in.model_dump())
    if case is None:
        raise PersistenceError("Failed to create case")

    log_case_created(db, case.id, current_user.id, case.title)
    if case.next_hearing is not None:
        log_hearing_scheduled(db, case.id, current_user.id, case.next_hearing)

    return {"ok": True, "case": _case_out(case)}


@router.get("/{case_id}")
def get_case(
    case_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    case = case_repository.get(db, current_user.id, case_id) or _owned_or_404(db, current_user, case_id)
    return {"ok": True, "case": _case_out(case)}


@router.patch("/{case_id}")
def update_case(
    case_id: UUID,
    case_in: CaseUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Partial update. Status and hearing changes are logged as their own
    timeline events; anything else as one CASE_UPDATED event.
    """
    patch = case_in.model_dump(exclude_unset=True)
    if not patch:
        raise ValidationFailedError("No fields to update")

    before = case_repository.get(db, current_user.id, case_id)
    if before is None:
        if _owned_or_404(db, current_user, case_id).source == case_repository.SOURCE_LEGACY:
            raise ValidationFailedError("Legacy case records are read-only")
        raise CaseNotFoundError(str(case_id))

    after = case_repository.update(db, current_user.id, case_id, patch)
    if after is None:
        raise PersistenceError("Failed to update case")

    if after.status != before.status:
        log_status_changed(db, case_id, current_user.id, before.status.value, after.status.value)
    if after.next_hearing is not None and after.next_hearing != before.next_hearing:
        log_hearing_scheduled(db, case_id, current_user.id, after.next_hearing, previous=before.next_hearing)

    other_fields = sorted(set(patch) - LIFECYCLE_FIELDS)
    if other_fields:
        log_case_updated(db, case_id, current_user.id, other_fields)

    return {"ok": True, "case": _case_out(case_repository.get(db, current_user.id, case_id) or after)}


@router.delete("/{case_id}")
def delete_case(
    case_id: UUID,
    current_user: User = Depends(get_current_user),
    store: ActiveCaseStore = Depends(get_active_case_store),
    db: Session = Depends(get_db)
):
    if case_repository.get(db, current_user.id, case_id) is None:
        raise CaseNotFoundError(str(case_id))
    if not case_repository.delete(db, current_user.id, case_id):
        raise PersistenceError("Failed to delete case")

    clear_if_active(store, current_user, case_id)
    return {"ok": True, "id": str(case_id)}


# ============================================================================
# Timeline
# ============================================================================

@router.get("/{case_id}/activities")
def get_case_activities(
    case_id: UUID,
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    _owned_or_404(db, current_user, case_id)
    activities = list_activities(db, case_id, limit=limit)
    return {
        "ok": True,
        "activities": [_entry_out(e) for e in iter_timeline(activities)],
    }


@router.get("/{case_id}/timeline")
def get_case_timeline(
    case_id: UUID,
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Activities grouped by calendar day, content trimmed for display"""
    _owned_or_404(db, current_user, case_id)
    activities = list_activities(db, case_id, limit=limit)
    days = [
        {"date": day.isoformat(), "entries": [_entry_out(e) for e in entries]}
        for day, entries in group_by_day(iter_timeline(activities, content_limit=500))
    ]
    return {"ok": True, "days": days, "total": len(activities)}


@router.post("/{case_id}/notes", status_code=201)
def add_case_note(
    case_id: UUID,
    note_in: NoteCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    _owned_or_404(db, current_user, case_id)
    note = require_text(note_in.note, "Note cannot be empty")

    # The note lives only on the timeline, so a failed write is a failed request
    result = log_note_added(db, case_id, current_user.id, note)
    if not result:
        raise PersistenceError("Failed to save note")
    return {"ok": True, "channel": result.channel}
