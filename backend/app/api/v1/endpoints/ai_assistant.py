"""
AI assistant chat
"""
from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.v1.deps import get_current_user, resolve_linked_case
from app.core.logger import logger, sanitize_for_log
from app.db.database import get_db
from app.db.models import ChatSession, User
from app.db.schemas import ChatRequest
from app.services.ai_service import CHAT_SYSTEM_PROMPT, TIER_PRO, AIService, get_ai_service
from app.services.case_activity_service import log_ai_chat
from app.utils.exceptions import AIServiceError, PersistenceError
from app.utils.validators import require_text

router = APIRouter()


@router.post("/chat")
def chat(
    chat_in: ChatRequest,
    current_user: User = Depends(get_current_user),
    ai: AIService = Depends(get_ai_service),
    db: Session = Depends(get_db)
):
    question = require_text(chat_in.question, "Question is required")
    linked_case = resolve_linked_case(db, current_user, chat_in.case_id)

    system_prompt = CHAT_SYSTEM_PROMPT
    if linked_case is not None:
        parts = [f'Case: "{linked_case.title}"', f"Type: {linked_case.case_type.value}"]
        if linked_case.court:
            parts.append(f"Court: {linked_case.court}")
        if linked_case.petitioner or linked_case.respondent:
            parts.append(f"Parties: {linked_case.petitioner or '-'} v. {linked_case.respondent or '-'}")
        parts.append(f"Status: {linked_case.status.value}")
        system_prompt += "\n\n[" + ", ".join(parts) + "]"

    messages = [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": question},
    ]
    try:
        answer = ai.complete(messages, TIER_PRO, max_tokens=1500, temperature=0.4)
    except AIServiceError as e:
        raise AIServiceError("Failed to get an answer. Please try again.") from e

    try:
        session = ChatSession(
            user_id=str(current_user.id),
            case_id=linked_case.id if linked_case else None,
            question=question,
            answer=answer,
        )
        db.add(session)
        db.commit()
        db.refresh(session)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to save chat session: %s", sanitize_for_log(e))
        raise PersistenceError("Failed to save chat")

    if linked_case is not None:
        log_ai_chat(db, linked_case.id, current_user.id, question, answer)

    return {
        "ok": True,
        "id": str(session.id),
        "answer": answer,
        "caseId": str(session.case_id) if session.case_id else None,
        "createdAt": session.created_at.isoformat(),
    }
