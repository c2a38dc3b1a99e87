"""
Legal notice endpoints
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
from app.db.models import Notice, User
from app.db.schemas import NoticeCreate
from app.services.ai_service import NOTICE_SYSTEM_PROMPT, TIER_FREE, TIER_PRO, AIService, get_ai_service
from app.services.case_activity_service import log_notice_created
from app.utils.exceptions import AIServiceError, PersistenceError, ValidationFailedError
from app.utils.validators import sanitize_input

router = APIRouter()


def _notice_to_api(notice: Notice) -> dict:
    return {
        "id": str(notice.id),
        "type": notice.type,
        "subject": notice.title,
        "content": notice.content,
        "recipient": notice.recipient,
        "caseId": str(notice.case_id) if notice.case_id else None,
        "createdAt": notice.created_at.isoformat() if notice.created_at else None,
    }


@router.post("")
def create_notice(
    request: Request,
    notice_in: NoticeCreate,
    user: Optional[User] = Depends(get_optional_user),
    ai: AIService = Depends(get_ai_service),
    db: Session = Depends(get_db)
):
    recipient = sanitize_input(notice_in.recipient)
    subject = sanitize_input(notice_in.subject)
    if not recipient or not subject:
        raise ValidationFailedError("Recipient and subject are required")

    owner_id = owner_id_for(user, get_client_ip(request))
    linked_case = resolve_linked_case(db, user, notice_in.case_id)

    lines = [
        f"Notice Type: {sanitize_input(notice_in.notice_type) or 'Legal Notice'}",
        f"Recipient: {recipient}",
    ]
    if notice_in.recipient_address:
        lines.append(f"Address: {sanitize_input(notice_in.recipient_address)}")
    lines.append(f"Subject: {subject}")
    if notice_in.amount not in (None, ""):
        lines.append(f"Amount: ₹{notice_in.amount}")
    if notice_in.due_date:
        lines.append(f"Due Date: {sanitize_input(notice_in.due_date)}")
    if notice_in.details:
        lines.append(f"Additional Details: {sanitize_input(notice_in.details)}")
    context = "\n".join(lines)
    if linked_case is not None:
        cnr = f" (CNR: {linked_case.cnr_number})" if linked_case.cnr_number else ""
        context += f"\n\nCase Reference: {linked_case.title}{cnr}"

    messages = [
        {"role": "system", "content": NOTICE_SYSTEM_PROMPT},
        {
            "role": "user",
            "content": f"Generate a professional legal notice:\n\n{context}\n\n"
                       "Format it as a formal legal notice ready to be sent.",
        },
    ]
    try:
        content = ai.complete(messages, TIER_PRO if user else TIER_FREE, max_tokens=2000, temperature=0.3)
    except AIServiceError as e:
        raise AIServiceError("Failed to generate notice") from e
    if not content:
        raise AIServiceError("Failed to generate notice")

    try:
        notice = Notice(
            user_id=owner_id,
            case_id=linked_case.id if linked_case else None,
            type=notice_in.notice_type or "legal",
            title=subject,
            content=content,
            recipient=recipient,
        )
        db.add(notice)
        db.commit()
        db.refresh(notice)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to save notice: %s", sanitize_for_log(e))
        raise PersistenceError("Failed to generate notice")

    if linked_case is not None:
        log_notice_created(
            db, linked_case.id, user.id, notice_in.notice_type or "Legal Notice", recipient, notice.id
        )

    return {
        "ok": True,
        **_notice_to_api(notice),
        "notice": content,
        "type": notice_in.notice_type,
    }


@router.get("")
def list_notices(
    request: Request,
    case_id: Optional[UUID] = Query(None, alias="caseId"),
    user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    owner_id = owner_id_for(user, get_client_ip(request))
    try:
        query = db.query(Notice).filter(Notice.user_id == owner_id)
        if case_id:
            query = query.filter(Notice.case_id == case_id)
        notices = query.order_by(Notice.created_at.desc()).limit(settings.LIST_PAGE_SIZE).all()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning("Notices list unavailable: %s", sanitize_for_log(e))
        notices = []
    return {"ok": True, "notices": [_notice_to_api(n) for n in notices]}
