"""
Case tracker: per-case health
"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.v1.deps import get_current_user
from app.core.logger import logger, sanitize_for_log
from app.db.database import get_db
from app.db.models import User
from app.db.schemas import CaseHealthResponse
from app.services.case_health_service import get_case_health
from app.utils.exceptions import CaseNotFoundError, PersistenceError, ValidationFailedError

router = APIRouter()


@router.get("/health")
def case_health(
    case_id: Optional[str] = Query(None, alias="caseId"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Engagement score for one case: documents generated, AI assists, uploads
    and timeline length.
    """
    if not case_id:
        raise ValidationFailedError("Missing caseId")
    try:
        case_uuid = UUID(case_id)
    except ValueError:
        raise ValidationFailedError("Invalid caseId")

    try:
        health = get_case_health(db, current_user.id, case_uuid)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Case health failed for %s: %s", case_uuid, sanitize_for_log(e))
        raise PersistenceError("Failed to fetch case health")

    if health is None:
        raise CaseNotFoundError(case_id)
    return CaseHealthResponse(**health).model_dump(mode="json", by_alias=True)
