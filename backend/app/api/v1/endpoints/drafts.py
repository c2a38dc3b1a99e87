"""
Draft generator endpoints
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
from app.db.models import Draft, User
from app.db.schemas import DraftCreate
from app.services.case_activity_service import log_draft_created
from app.services.draft_templates import default_title, render_draft, template_name
from app.utils.exceptions import PersistenceError
from app.utils.validators import sanitize_input

router = APIRouter()


def _draft_to_api(draft: Draft) -> dict:
    return {
        "id": str(draft.id),
        "title": draft.title,
        "type": draft.type,
        "content": draft.content,
        "caseId": str(draft.case_id) if draft.case_id else None,
        "createdAt": draft.created_at.isoformat() if draft.created_at else None,
    }


@router.post("", dependencies=[Depends(enforce_anonymous_quota)])
def create_draft(
    request: Request,
    draft_in: DraftCreate,
    user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    """
    Render a draft from a built-in template and store it.
    Anonymous callers are limited per IP per day.
    """
    owner_id = owner_id_for(user, get_client_ip(request))
    linked_case = resolve_linked_case(db, user, draft_in.case_id)

    raw_inputs = draft_in.inputs or draft_in.form_data or {}
    inputs = {
        key: sanitize_input(value)
        for key, value in raw_inputs.items()
        if value and value.strip()
    }
    content = render_draft(draft_in.type, inputs)
    title = sanitize_input(draft_in.title) or default_title(draft_in.type)

    try:
        draft = Draft(
            user_id=owner_id,
            case_id=linked_case.id if linked_case else None,
            type=draft_in.type,
            title=title,
            content=content,
            inputs=inputs,
        )
        db.add(draft)
        db.commit()
        db.refresh(draft)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to save draft: %s", sanitize_for_log(e))
        raise PersistenceError("Failed to generate draft")

    if linked_case is not None:
        log_draft_created(db, linked_case.id, user.id, template_name(draft_in.type), title, draft.id)

    return {"ok": True, **_draft_to_api(draft)}


@router.get("")
def list_drafts(
    request: Request,
    case_id: Optional[UUID] = Query(None, alias="caseId"),
    user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    owner_id = owner_id_for(user, get_client_ip(request))
    try:
        query = db.query(Draft).filter(Draft.user_id == owner_id)
        if case_id:
            query = query.filter(Draft.case_id == case_id)
        drafts = query.order_by(Draft.created_at.desc()).limit(settings.LIST_PAGE_SIZE).all()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning("Drafts list unavailable: %s", sanitize_for_log(e))
        drafts = []
    return {"ok": True, "drafts": [_draft_to_api(d) for d in drafts]}
