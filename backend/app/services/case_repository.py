"""
Case repository adapter.

Two upstream shapes feed one runtime shape:

* ``cases`` rows (canonical)        -> ``map_case_row``
* ``case_trackers`` rows (legacy)   -> ``map_tracker_row``

Legacy rows are normalized on every read and never migrated forward. Only
canonical rows can be created, updated or deleted here.
"""
from __future__ import annotations

import uuid
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.logger import logger, sanitize_for_log
from app.db.models import (
    ActivityType,
    Case,
    CaseActivity,
    CasePriority,
    CaseStatus,
    CaseTracker,
    CaseType,
    Draft,
    Notice,
    UploadedFile,
)
from app.db.schemas import CaseRecord

SOURCE_CASES = "cases"
SOURCE_LEGACY = "case_tracker"

UNTITLED_CASE = "Untitled Case"


def naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Timestamps are stored as naive UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _enum_or(enum_cls, value, default):
    if value is None or value == "":
        return default
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).upper())
    except ValueError:
        return default


# ============================================================================
# Mapping (pure)
# ============================================================================

def map_case_row(row: Case, counts: Optional[Dict[str, int]] = None) -> CaseRecord:
    counts = counts or {}
    return CaseRecord(
        id=row.id,
        title=row.title or UNTITLED_CASE,
        cnr_number=row.cnr_number,
        case_number=row.case_number,
        case_type=_enum_or(CaseType, row.case_type, CaseType.GENERAL),
        court=row.court,
        judge=row.judge,
        petitioner=row.petitioner,
        respondent=row.respondent,
        client_id=row.client_id,
        client_name=row.client_name,
        status=_enum_or(CaseStatus, row.status, CaseStatus.OPEN),
        stage=row.stage,
        priority=_enum_or(CasePriority, row.priority, CasePriority.MEDIUM),
        filing_date=row.filing_date,
        next_hearing=row.next_hearing,
        tags=list(row.tags or []),
        notes=row.notes,
        ai_summary=row.ai_summary,
        ai_prediction=row.ai_prediction,
        created_at=row.created_at,
        updated_at=row.updated_at,
        activities_count=counts.get("activities", 0),
        hearings_count=counts.get("hearings", 0),
        documents_count=counts.get("documents", 0),
        source=SOURCE_CASES,
    )


def map_tracker_row(row: CaseTracker, counts: Optional[Dict[str, int]] = None) -> CaseRecord:
    counts = counts or {}
    details = row.details if isinstance(row.details, dict) else {}
    return CaseRecord(
        id=row.id,
        title=row.party_name or UNTITLED_CASE,
        cnr_number=row.cnr,
        case_type=_enum_or(CaseType, details.get("caseType"), CaseType.GENERAL),
        court=row.court,
        petitioner=row.party_name,
        respondent=details.get("respondent"),
        status=_enum_or(CaseStatus, row.status, CaseStatus.OPEN),
        priority=CasePriority.MEDIUM,
        next_hearing=row.next_date,
        created_at=row.created_at,
        updated_at=row.updated_at or row.last_update,
        activities_count=counts.get("activities", 0),
        hearings_count=counts.get("hearings", 0),
        documents_count=counts.get("documents", 0),
        source=SOURCE_LEGACY,
    )


# ============================================================================
# Count projections
# ============================================================================

def _grouped_count(db: Session, column, ids: List[uuid.UUID], *criteria) -> Counter:
    rows = (
        db.query(column, func.count())
        .filter(column.in_(ids), *criteria)
        .group_by(column)
        .all()
    )
    return Counter({key: total for key, total in rows})


def project_counts(db: Session, case_ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, Dict[str, int]]:
    """
    activities/hearings/documents per case. Never authoritative; any failure
    yields an empty projection so the load itself still succeeds.
    """
    ids = list(case_ids)
    if not ids:
        return {}
    try:
        activities = _grouped_count(db, CaseActivity.case_id, ids)
        hearings = _grouped_count(
            db, CaseActivity.case_id, ids, CaseActivity.type == ActivityType.HEARING_ADDED
        )
        documents = (
            _grouped_count(db, Draft.case_id, ids)
            + _grouped_count(db, Notice.case_id, ids)
            + _grouped_count(db, UploadedFile.case_id, ids)
        )
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning("Case count projection failed: %s", sanitize_for_log(e))
        return {}

    return {
        case_id: {
            "activities": activities.get(case_id, 0),
            "hearings": hearings.get(case_id, 0),
            "documents": documents.get(case_id, 0),
        }
        for case_id in ids
    }


# ============================================================================
# Reads
# ============================================================================

def load(db: Session, user_id: uuid.UUID) -> List[CaseRecord]:
    """
    All cases of ``user_id``, most recently updated first.

    Canonical rows win; legacy tracker rows are read only when the caller has
    no canonical rows at all. Storage failures degrade to ``[]``.
    """
    try:
        rows = (
            db.query(Case)
            .filter(Case.user_id == user_id)
            .order_by(Case.updated_at.desc())
            .all()
        )
        if rows:
            counts = project_counts(db, [r.id for r in rows])
            return [map_case_row(r, counts.get(r.id)) for r in rows]

        trackers = (
            db.query(CaseTracker)
            .filter(CaseTracker.user_id == user_id)
            .order_by(func.coalesce(CaseTracker.updated_at, CaseTracker.last_update, CaseTracker.created_at).desc())
            .all()
        )
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to load cases for user %s: %s", user_id, sanitize_for_log(e))
        return []

    counts = project_counts(db, [t.id for t in trackers])
    return [map_tracker_row(t, counts.get(t.id)) for t in trackers]


def _owned_case_row(db: Session, user_id: uuid.UUID, case_id: uuid.UUID) -> Optional[Case]:
    return db.query(Case).filter(Case.id == case_id, Case.user_id == user_id).first()


def get(db: Session, user_id: uuid.UUID, case_id: uuid.UUID) -> Optional[CaseRecord]:
    """Canonical case owned by ``user_id``, with counts."""
    try:
        row = _owned_case_row(db, user_id, case_id)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to read case %s: %s", case_id, sanitize_for_log(e))
        return None
    if row is None:
        return None
    return map_case_row(row, project_counts(db, [row.id]).get(row.id))


def find_owned(db: Session, user_id: uuid.UUID, case_id: uuid.UUID) -> Optional[CaseRecord]:
    """
    Resolve ``case_id`` among the caller's canonical or legacy rows.
    ``None`` covers both "missing" and "owned by someone else".
    """
    try:
        row = _owned_case_row(db, user_id, case_id)
        if row is not None:
            return map_case_row(row)
        tracker = (
            db.query(CaseTracker)
            .filter(CaseTracker.id == case_id, CaseTracker.user_id == user_id)
            .first()
        )
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Ownership lookup failed for case %s: %s", case_id, sanitize_for_log(e))
        return None
    return map_tracker_row(tracker) if tracker is not None else None


# ============================================================================
# Mutations (canonical only)
# ============================================================================

_DATETIME_FIELDS = ("filing_date", "next_hearing")
# NOT NULL columns: an explicit null in a patch means "leave unchanged"
_REQUIRED_FIELDS = ("title", "case_type", "status", "priority")


def _normalize_patch(data: Dict[str, Any]) -> Dict[str, Any]:
    patch = {
        key: value
        for key, value in data.items()
        if not (key in _REQUIRED_FIELDS and value is None)
    }
    for key in _DATETIME_FIELDS:
        if key in patch:
            patch[key] = naive_utc(patch[key])
    return patch


def create(db: Session, user_id: uuid.UUID, data: Dict[str, Any]) -> Optional[CaseRecord]:
    patch = _normalize_patch(data)
    if patch.get("tags") is None:
        patch["tags"] = []
    try:
        row = Case(user_id=user_id, **patch)
        db.add(row)
        db.commit()
        db.refresh(row)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to create case: %s", sanitize_for_log(e))
        return None

    logger.info("Case created: %s", row.id)
    return map_case_row(row)


def update(
    db: Session, user_id: uuid.UUID, case_id: uuid.UUID, data: Dict[str, Any]
) -> Optional[CaseRecord]:
    """Apply a partial update. ``None`` when not owned or not persisted."""
    patch = _normalize_patch(data)
    try:
        row = _owned_case_row(db, user_id, case_id)
        if row is None:
            return None
        for key, value in patch.items():
            if key == "tags" and value is None:
                value = []
            setattr(row, key, value)
        row.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(row)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to update case %s: %s", case_id, sanitize_for_log(e))
        return None

    logger.info("Case updated: %s (%s)", case_id, ", ".join(sorted(patch)) or "no fields")
    return map_case_row(row, project_counts(db, [row.id]).get(row.id))


def delete(db: Session, user_id: uuid.UUID, case_id: uuid.UUID) -> bool:
    """
    Remove the case row. Its activities stay behind as an orphaned audit
    trail.
    """
    try:
        row = _owned_case_row(db, user_id, case_id)
        if row is None:
            return False
        db.delete(row)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to delete case %s: %s", case_id, sanitize_for_log(e))
        return False

    logger.info("Case deleted: %s", case_id)
    return True
