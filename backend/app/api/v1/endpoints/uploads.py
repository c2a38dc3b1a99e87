# backend/app/api/v1/endpoints/uploads.py

"""
Upload Endpoints

Files go straight to S3; the row in ``uploaded_files`` is what links them
to a case.
"""
from io import BytesIO
from typing import Optional
from uuid import UUID, uuid4

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.v1.deps import get_current_user, resolve_linked_case
from app.core.config import settings
from app.core.logger import logger, sanitize_for_log
from app.db.database import get_db
from app.db.models import UploadedFile, User
from app.services.case_activity_service import log_document_uploaded
from app.services.s3_service import S3Service, get_s3_service
from app.utils.exceptions import PersistenceError, ValidationFailedError
from app.utils.helpers import slugify
from app.utils.validators import sanitize_input

router = APIRouter()


@router.post("", status_code=201)
async def upload_file(
    file: UploadFile = File(...),
    case_id: Optional[str] = Form(None, alias="caseId"),
    current_user: User = Depends(get_current_user),
    s3: S3Service = Depends(get_s3_service),
    db: Session = Depends(get_db)
):
    """
    Store one file and, when ``caseId`` is given, put it on that case's timeline.
    """
    case_uuid = None
    if case_id:
        try:
            case_uuid = UUID(case_id)
        except ValueError:
            raise ValidationFailedError("Invalid caseId")
    linked_case = resolve_linked_case(db, current_user, case_uuid)

    data = await file.read()
    if not data:
        raise ValidationFailedError("File is empty")
    if len(data) > settings.MAX_UPLOAD_SIZE:
        raise ValidationFailedError(
            f"File exceeds the {settings.MAX_UPLOAD_SIZE // (1024 * 1024)}MB upload limit"
        )

    filename = sanitize_input(file.filename, max_length=255) or "document"
    content_type = file.content_type or "application/octet-stream"
    s3_key = f"uploads/{current_user.id}/{uuid4()}/{slugify(filename) or 'document'}"

    s3.upload_fileobj(BytesIO(data), s3_key, content_type=content_type)

    try:
        record = UploadedFile(
            user_id=str(current_user.id),
            case_id=linked_case.id if linked_case else None,
            filename=filename,
            content_type=content_type,
            size_bytes=len(data),
            s3_bucket=s3.bucket,
            s3_key=s3_key,
        )
        db.add(record)
        db.commit()
        db.refresh(record)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to record upload %s: %s", s3_key, sanitize_for_log(e))
        s3.delete_object(s3_key)
        raise PersistenceError("Upload failed")

    if linked_case is not None:
        log_document_uploaded(db, linked_case.id, current_user.id, filename, record.id)

    return {
        "ok": True,
        "id": str(record.id),
        "filename": record.filename,
        "contentType": record.content_type,
        "size": record.size_bytes,
        "caseId": str(record.case_id) if record.case_id else None,
        "url": s3.generate_download_url(s3_key),
        "createdAt": record.created_at.isoformat(),
    }
