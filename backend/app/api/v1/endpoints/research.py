"""
Legal research endpoints
"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.v1.deps import get_client_ip, get_optional_user, owner_id_for, resolve_linked_case
from app.core.config import settings
from app.core.logger import logger, sanitize_for_log
from app.db.database import get_db
from app.db.models import Research, User
from app.db.schemas import ResearchCreate
from app.services.ai_service import RESEARCH_SYSTEM_PROMPT, TIER_FREE, TIER_PRO, AIService, get_ai_service
from app.services.case_activity_service import log_research
from app.utils.exceptions import AIServiceError, PersistenceError
from app.utils.validators import require_text

router = APIRouter()

MAX_QUERY_CHARS = 500


def _research_to_api(item: Research) -> dict:
    return {
        "id": str(item.id),
        "query": item.query,
        "result": item.result,
        "caseId": str(item.case_id) if item.case_id else None,
        "createdAt": item.created_at.isoformat() if item.created_at else None,
    }


@router.post("")
def create_research(
    request: Request,
    research_in: ResearchCreate,
    user: Optional[User] = Depends(get_optional_user),
    ai: AIService = Depends(get_ai_service),
    db: Session = Depends(get_db)
):
    query = require_text(research_in.query, "Please provide a valid search query", min_length=2)
    query = query[:MAX_QUERY_CHARS]

    owner_id = owner_id_for(user, get_client_ip(request))
    linked_case = resolve_linked_case(db, user, research_in.case_id)

    system_prompt = RESEARCH_SYSTEM_PROMPT
    if linked_case is not None:
        system_prompt += (
            f'\n\n[Research Context: Case "{linked_case.title}", '
            f"Type: {linked_case.case_type.value}, Court: {linked_case.court or 'N/A'}]"
        )
    messages = [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": f'Provide detailed legal research on: "{query}"'},
    ]
    try:
        result = ai.complete(messages, TIER_PRO if user else TIER_FREE, max_tokens=2000, temperature=0.5)
    except AIServiceError as e:
        raise AIServiceError("Research failed. Please try again.") from e
    if not result:
        raise AIServiceError("No response from AI service")

    try:
        research = Research(
            user_id=owner_id,
            case_id=linked_case.id if linked_case else None,
            query=query,
            result=result,
            type="all",
        )
        db.add(research)
        db.commit()
        db.refresh(research)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to save research: %s", sanitize_for_log(e))
        raise PersistenceError("Research failed. Please try again.")

    if linked_case is not None:
        log_research(db, linked_case.id, user.id, query, result, research.id)

    return {"ok": True, **_research_to_api(research), "content": result}


@router.get("")
def list_research(
    request: Request,
    case_id: Optional[UUID] = Query(None, alias="caseId"),
    user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    owner_id = owner_id_for(user, get_client_ip(request))
    try:
        query = db.query(Research).filter(Research.user_id == owner_id)
        if case_id:
            query = query.filter(Research.case_id == case_id)
        items = query.order_by(Research.created_at.desc()).limit(settings.LIST_PAGE_SIZE).all()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning("Research list unavailable: %s", sanitize_for_log(e))
        items = []
    return {"ok": True, "research": [_research_to_api(r) for r in items]}
