"""
Judgment summarizer endpoints
"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.v1.deps import (
    enforce_anonymous_quota,
    get_client_ip,
    get_optional_user,
    owner_id_for,
    resolve_linked_case,
)
from app.core.config import settings
from app.core.logger import logger, sanitize_for_log
from app.db.database import get_db
from app.db.models import Summary, User
from app.db.schemas import SummaryCreate
from app.services.ai_service import SUMMARIZER_SYSTEM_PROMPT, TIER_FREE, TIER_PRO, AIService, get_ai_service
from app.services.case_activity_service import log_summary_created
from app.utils.exceptions import AIServiceError, PersistenceError
from app.utils.validators import require_text

router = APIRouter()

# Only the head of a long judgment goes to the model
PROMPT_TEXT_CHARS = 15000
STORED_TEXT_CHARS = 50000


def _summary_to_api(item: Summary) -> dict:
    return {
        "id": str(item.id),
        "title": item.title,
        "summary": item.summary,
        "caseId": str(item.case_id) if item.case_id else None,
        "createdAt": item.created_at.isoformat() if item.created_at else None,
    }


@router.post("", dependencies=[Depends(enforce_anonymous_quota)])
def create_summary(
    request: Request,
    summary_in: SummaryCreate,
    user: Optional[User] = Depends(get_optional_user),
    ai: AIService = Depends(get_ai_service),
    db: Session = Depends(get_db)
):
    text = require_text(summary_in.text, "Document text is too short", min_length=10)
    title = require_text(summary_in.title, "Title is required")

    owner_id = owner_id_for(user, get_client_ip(request))
    linked_case = resolve_linked_case(db, user, summary_in.case_id)

    messages = [
        {"role": "system", "content": SUMMARIZER_SYSTEM_PROMPT},
        {
            "role": "user",
            "content": f'Summarize this legal document titled "{title}":\n\n{text[:PROMPT_TEXT_CHARS]}',
        },
    ]
    try:
        summary = ai.complete(messages, TIER_PRO if user else TIER_FREE, max_tokens=1500, temperature=0.3)
    except AIServiceError as e:
        raise AIServiceError("Failed to summarize document") from e
    if not summary:
        raise AIServiceError("No summary generated")

    try:
        item = Summary(
            user_id=owner_id,
            case_id=linked_case.id if linked_case else None,
            title=title,
            original_text=text[:STORED_TEXT_CHARS],
            summary=summary,
        )
        db.add(item)
        db.commit()
        db.refresh(item)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to save summary: %s", sanitize_for_log(e))
        raise PersistenceError("Failed to summarize document")

    if linked_case is not None:
        log_summary_created(db, linked_case.id, user.id, title, summary, item.id)

    return {"ok": True, **_summary_to_api(item)}


@router.get("")
def list_summaries(
    request: Request,
    case_id: Optional[UUID] = Query(None, alias="caseId"),
    user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    owner_id = owner_id_for(user, get_client_ip(request))
    try:
        query = db.query(Summary).filter(Summary.user_id == owner_id)
        if case_id:
            query = query.filter(Summary.case_id == case_id)
        items = query.order_by(Summary.created_at.desc()).limit(settings.LIST_PAGE_SIZE).all()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning("Summaries list unavailable: %s", sanitize_for_log(e))
        items = []
    return {"ok": True, "summaries": [_summary_to_api(s) for s in items]}
