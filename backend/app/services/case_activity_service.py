"""
Case activity log
=================
Appends typed events to a case's timeline from any feature.

Logging is an enhancement, never a requirement of the feature that triggers it:
``record_activity`` does not raise. It returns an ``ActivityLogResult`` that is
truthy when the event landed somewhere and falsy otherwise.

Storage paths, in order:
1. ``case_activities`` insert (then a best-effort ``cases.updated_at`` touch).
2. If the activity table is unusable, the legacy ``case_trackers`` row with
   the same id gets ``details.lastActivity`` overwritten. Only the latest
   event survives on this path.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.logger import logger, sanitize_for_log
from app.db.models import ActivityType, Case, CaseActivity, CaseTracker, FeatureType
from app.utils.helpers import format_date

IdLike = Union[str, uuid.UUID, None]

CHANNEL_ACTIVITY = "activity"
CHANNEL_LEGACY = "legacy"
CHANNEL_SKIPPED = "skipped"


@dataclass(frozen=True)
class ActivityLogResult:
    ok: bool
    channel: str
    error: Optional[str] = None

    def __bool__(self) -> bool:
        return self.ok


def _as_uuid(value: IdLike) -> Optional[uuid.UUID]:
    if value is None or value == "":
        return None
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def record_activity(
    db: Session,
    case_id: IdLike,
    user_id: IdLike,
    type: ActivityType,
    title: str,
    content: str,
    feature: Optional[FeatureType] = None,
    metadata: Optional[Dict[str, Any]] = None,
    reference_id: IdLike = None,
) -> ActivityLogResult:
    """
    Append one event to the timeline of ``case_id``.

    Missing or malformed ``case_id`` / ``user_id`` is a no-op reported as
    failure. Storage errors are logged and folded into the result.
    """
    case_uuid = _as_uuid(case_id)
    user_uuid = _as_uuid(user_id)
    if case_uuid is None or user_uuid is None:
        logger.info("record_activity skipped: missing caseId or userId (type=%s)", type.value)
        return ActivityLogResult(ok=False, channel=CHANNEL_SKIPPED, error="missing caseId or userId")

    title = (title or "")[: settings.ACTIVITY_TITLE_MAX_CHARS]
    content = content or ""

    try:
        activity = CaseActivity(
            case_id=case_uuid,
            user_id=user_uuid,
            type=type,
            feature=feature,
            title=title,
            content=content[: settings.ACTIVITY_CONTENT_MAX_CHARS],
            activity_metadata=metadata or None,
            reference_id=str(reference_id) if reference_id else None,
        )
        db.add(activity)
        db.commit()
    except SQLAlchemyError as e:
        _rollback_quietly(db)
        logger.warning(
            "case_activities unavailable, using legacy fallback for case %s: %s",
            case_uuid, sanitize_for_log(e),
        )
        return _record_legacy_activity(db, case_uuid, type, title, content)
    except Exception as e:
        _rollback_quietly(db)
        logger.error("Failed to log activity for case %s: %s", case_uuid, sanitize_for_log(e))
        return ActivityLogResult(ok=False, channel=CHANNEL_ACTIVITY, error="unexpected error")

    _touch_case(db, case_uuid)
    logger.info("Activity %s logged for case %s", type.value, case_uuid)
    return ActivityLogResult(ok=True, channel=CHANNEL_ACTIVITY)


def _touch_case(db: Session, case_id: uuid.UUID) -> None:
    # Last writer wins; a failure here leaves the committed activity in place.
    try:
        db.query(Case).filter(Case.id == case_id).update(
            {Case.updated_at: datetime.utcnow()}, synchronize_session=False
        )
        db.commit()
    except Exception as e:
        _rollback_quietly(db)
        logger.warning("Failed to touch updated_at for case %s: %s", case_id, sanitize_for_log(e))


def _rollback_quietly(db: Session) -> None:
    try:
        db.rollback()
    except SQLAlchemyError as e:
        logger.warning("Rollback after activity failure failed: %s", sanitize_for_log(e))


def _record_legacy_activity(
    db: Session,
    case_id: uuid.UUID,
    type: ActivityType,
    title: str,
    content: str,
) -> ActivityLogResult:
    now = datetime.utcnow()
    try:
        tracker = db.query(CaseTracker).filter(CaseTracker.id == case_id).first()
        if tracker is None:
            logger.warning("Legacy fallback: no case tracker row for %s", case_id)
            return ActivityLogResult(ok=False, channel=CHANNEL_LEGACY, error="case not found")

        details = dict(tracker.details or {})
        details["lastActivity"] = {
            "type": type.value,
            "title": title,
            "content": content[: settings.ACTIVITY_FALLBACK_CONTENT_MAX_CHARS],
            "createdAt": now.isoformat(),
        }
        tracker.details = details
        tracker.last_update = now
        db.commit()
    except SQLAlchemyError as e:
        _rollback_quietly(db)
        logger.error("Legacy activity fallback failed for case %s: %s", case_id, sanitize_for_log(e))
        return ActivityLogResult(ok=False, channel=CHANNEL_LEGACY, error="storage error")
    except Exception as e:
        _rollback_quietly(db)
        logger.error("Legacy activity fallback failed for case %s: %s", case_id, sanitize_for_log(e))
        return ActivityLogResult(ok=False, channel=CHANNEL_LEGACY, error="unexpected error")

    logger.info("Activity %s stored as lastActivity on legacy case %s", type.value, case_id)
    return ActivityLogResult(ok=True, channel=CHANNEL_LEGACY)


# ============================================================================
# Feature loggers
# ============================================================================

def log_ai_chat(db: Session, case_id: IdLike, user_id: IdLike, question: str, answer: str) -> ActivityLogResult:
    return record_activity(
        db, case_id, user_id,
        type=ActivityType.AI_CHAT,
        feature=FeatureType.AI_ASSISTANT,
        title=question[:100],
        content=answer,
        metadata={"question": question},
    )


def log_draft_created(
    db: Session, case_id: IdLike, user_id: IdLike, draft_type: str, title: str, draft_id: IdLike
) -> ActivityLogResult:
    return record_activity(
        db, case_id, user_id,
        type=ActivityType.DRAFT_CREATED,
        feature=FeatureType.DRAFTS,
        title=f"Draft: {title}",
        content=f"Created {draft_type} document",
        reference_id=draft_id,
        metadata={"draftType": draft_type},
    )


def log_summary_created(
    db: Session, case_id: IdLike, user_id: IdLike, doc_title: str, summary: str, summary_id: IdLike
) -> ActivityLogResult:
    return record_activity(
        db, case_id, user_id,
        type=ActivityType.SUMMARY_CREATED,
        feature=FeatureType.JUDGMENT_SUMMARIZER,
        title=f"Summary: {doc_title}",
        content=summary[:2000],
        reference_id=summary_id,
        metadata={"docTitle": doc_title},
    )


def log_research(
    db: Session, case_id: IdLike, user_id: IdLike, query: str, result: str, research_id: IdLike
) -> ActivityLogResult:
    return record_activity(
        db, case_id, user_id,
        type=ActivityType.RESEARCH_DONE,
        feature=FeatureType.RESEARCH,
        title=f"Research: {query[:80]}",
        content=result[:2000],
        reference_id=research_id,
        metadata={"query": query},
    )


def log_notice_created(
    db: Session, case_id: IdLike, user_id: IdLike, notice_type: str, recipient: str, notice_id: IdLike
) -> ActivityLogResult:
    return record_activity(
        db, case_id, user_id,
        type=ActivityType.NOTICE_CREATED,
        feature=FeatureType.NOTICES,
        title=f"Notice to {recipient}",
        content=f"Created {notice_type} notice",
        reference_id=notice_id,
        metadata={"noticeType": notice_type, "recipient": recipient},
    )


def log_document_uploaded(
    db: Session, case_id: IdLike, user_id: IdLike, filename: str, file_id: IdLike
) -> ActivityLogResult:
    return record_activity(
        db, case_id, user_id,
        type=ActivityType.DOCUMENT_UPLOADED,
        feature=FeatureType.DOC_GENERATOR,
        title=f"Uploaded: {filename}",
        content=f'Document "{filename}" was uploaded to the case',
        reference_id=file_id,
        metadata={"filename": filename},
    )


def log_note_added(db: Session, case_id: IdLike, user_id: IdLike, note: str) -> ActivityLogResult:
    return record_activity(
        db, case_id, user_id,
        type=ActivityType.NOTE_ADDED,
        feature=FeatureType.CASE_TRACKER,
        title="Note Added",
        content=note,
    )


# Case lifecycle events

def log_case_created(db: Session, case_id: IdLike, user_id: IdLike, title: str) -> ActivityLogResult:
    return record_activity(
        db, case_id, user_id,
        type=ActivityType.CASE_CREATED,
        feature=FeatureType.CASE_TRACKER,
        title=f"Case created: {title}",
        content=f'Case "{title}" was added',
    )


def log_status_changed(
    db: Session, case_id: IdLike, user_id: IdLike, old_status: str, new_status: str
) -> ActivityLogResult:
    return record_activity(
        db, case_id, user_id,
        type=ActivityType.STATUS_CHANGED,
        feature=FeatureType.CASE_TRACKER,
        title=f"Status: {new_status}",
        content=f"Status changed from {old_status} to {new_status}",
        metadata={"from": old_status, "to": new_status},
    )


def log_hearing_scheduled(
    db: Session,
    case_id: IdLike,
    user_id: IdLike,
    hearing_at: datetime,
    previous: Optional[datetime] = None,
) -> ActivityLogResult:
    when = format_date(hearing_at)
    if previous is None:
        activity_type, title = ActivityType.HEARING_ADDED, f"Hearing on {when}"
        content = f"Next hearing scheduled for {when}"
    else:
        activity_type, title = ActivityType.HEARING_UPDATED, f"Hearing moved to {when}"
        content = f"Next hearing moved from {format_date(previous)} to {when}"
    return record_activity(
        db, case_id, user_id,
        type=activity_type,
        feature=FeatureType.CASE_TRACKER,
        title=title,
        content=content,
        metadata={"nextHearing": hearing_at.isoformat()},
    )


def log_case_updated(db: Session, case_id: IdLike, user_id: IdLike, fields: list) -> ActivityLogResult:
    return record_activity(
        db, case_id, user_id,
        type=ActivityType.CASE_UPDATED,
        feature=FeatureType.CASE_TRACKER,
        title="Case details updated",
        content="Updated: " + ", ".join(fields),
        metadata={"fields": fields},
    )


def list_activities(db: Session, case_id: uuid.UUID, limit: int = 50) -> List[CaseActivity]:
    """Newest first. Read failures degrade to an empty timeline."""
    try:
        return (
            db.query(CaseActivity)
            .filter(CaseActivity.case_id == case_id)
            .order_by(CaseActivity.created_at.desc())
            .limit(limit)
            .all()
        )
    except SQLAlchemyError as e:
        _rollback_quietly(db)
        logger.warning("Failed to read activities for case %s: %s", case_id, sanitize_for_log(e))
        return []
