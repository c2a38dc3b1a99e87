"""
Case health score.

The score and the time-saved estimate are pure functions of four per-case
counters; ``get_case_health`` is the only part that touches the database.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.db.models import Case, CaseActivity, CaseTracker, ChatSession, Draft, UploadedFile

BASE_SCORE = 20
MAX_SCORE = 100

# (points per item, cap)
DOCUMENT_WEIGHT = (10, 30)
AI_ASSIST_WEIGHT = (5, 25)
UPLOAD_WEIGHT = (5, 15)
TIMELINE_WEIGHT = (2, 10)

# minutes saved per item
MINUTES_PER_DOCUMENT = 15
MINUTES_PER_AI_ASSIST = 5
MINUTES_PER_UPLOAD = 2


@dataclass(frozen=True)
class HealthCounters:
    documents_generated: int = 0
    ai_assists: int = 0
    files_uploaded: int = 0
    timeline_entries: int = 0


def _weighted(count: int, weight) -> int:
    per_item, cap = weight
    return min(max(count, 0) * per_item, cap)


def compute_health_score(
    documents_generated: int, ai_assists: int, files_uploaded: int, timeline_entries: int
) -> int:
    """Bounded to [20, 100] for non-negative inputs."""
    score = BASE_SCORE
    score += _weighted(documents_generated, DOCUMENT_WEIGHT)
    score += _weighted(ai_assists, AI_ASSIST_WEIGHT)
    score += _weighted(files_uploaded, UPLOAD_WEIGHT)
    score += _weighted(timeline_entries, TIMELINE_WEIGHT)
    return min(score, MAX_SCORE)


def estimated_time_saved(documents_generated: int, ai_assists: int, files_uploaded: int) -> int:
    """Heuristic, in minutes. Linear and unbounded."""
    return (
        documents_generated * MINUTES_PER_DOCUMENT
        + ai_assists * MINUTES_PER_AI_ASSIST
        + files_uploaded * MINUTES_PER_UPLOAD
    )


def build_case_health(counters: HealthCounters, last_activity: Optional[datetime] = None) -> Dict[str, Any]:
    return {
        "documents_generated": counters.documents_generated,
        "ai_assists": counters.ai_assists,
        "files_uploaded": counters.files_uploaded,
        "timeline_entries": counters.timeline_entries,
        "last_activity": last_activity,
        "estimated_time_saved": estimated_time_saved(
            counters.documents_generated, counters.ai_assists, counters.files_uploaded
        ),
        "health_score": compute_health_score(
            counters.documents_generated,
            counters.ai_assists,
            counters.files_uploaded,
            counters.timeline_entries,
        ),
    }


def _count(db: Session, model, user_id: uuid.UUID, case_id: uuid.UUID) -> int:
    return (
        db.query(func.count(model.id))
        .filter(model.case_id == case_id, model.user_id == str(user_id))
        .scalar()
        or 0
    )


def get_case_health(db: Session, user_id: uuid.UUID, case_id: uuid.UUID) -> Optional[Dict[str, Any]]:
    """
    Health of one case owned by ``user_id``; ``None`` when it is not theirs.
    Storage errors propagate to the caller.
    """
    case = db.query(Case).filter(Case.id == case_id, Case.user_id == user_id).first()
    if case is not None:
        timeline_entries = (
            db.query(func.count(CaseActivity.id)).filter(CaseActivity.case_id == case_id).scalar() or 0
        )
        latest = (
            db.query(func.max(CaseActivity.created_at)).filter(CaseActivity.case_id == case_id).scalar()
        )
        last_activity = latest or case.updated_at or case.created_at
    else:
        tracker = (
            db.query(CaseTracker)
            .filter(CaseTracker.id == case_id, CaseTracker.user_id == user_id)
            .first()
        )
        if tracker is None:
            return None
        details = tracker.details if isinstance(tracker.details, dict) else {}
        timeline = details.get("timeline")
        timeline_entries = len(timeline) if isinstance(timeline, list) else 0
        last_activity = tracker.last_update or tracker.created_at

    counters = HealthCounters(
        documents_generated=_count(db, Draft, user_id, case_id),
        ai_assists=_count(db, ChatSession, user_id, case_id),
        files_uploaded=_count(db, UploadedFile, user_id, case_id),
        timeline_entries=timeline_entries,
    )
    return build_case_health(counters, last_activity)
