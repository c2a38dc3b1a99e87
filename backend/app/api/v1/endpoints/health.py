"""
Health and readiness checks – verify the database and S3.
"""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from botocore.exceptions import BotoCoreError, ClientError

from app.core.config import settings
from app.core.logger import logger, sanitize_for_log
from app.db.database import get_db
from app.services.s3_service import S3Service, get_s3_service

router = APIRouter()


def _check_database(db: Session) -> tuple[str, str]:
    """Returns (status, detail). Status is 'ok' or 'error'."""
    try:
        db.execute(text("SELECT 1"))
        return "ok", "Database reachable"
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Database check failed: %s", sanitize_for_log(e))
        return "error", "Database unreachable"


def _check_s3(s3: S3Service) -> tuple[str, str]:
    try:
        s3.s3_client.head_bucket(Bucket=s3.bucket)
        return "ok", f"Bucket '{s3.bucket}' accessible"
    except ClientError as e:
        code = e.response.get("Error", {}).get("Code", "")
        return "error", f"S3: {code}"
    except BotoCoreError as e:
        return "error", f"S3: {sanitize_for_log(e)}"


@router.get("")
def liveness():
    return {"ok": True, "status": "healthy", "version": settings.VERSION}


@router.get("/ready")
def readiness(
    db: Session = Depends(get_db),
    s3: S3Service = Depends(get_s3_service)
):
    checks = {}
    for name, (status, detail) in (
        ("database", _check_database(db)),
        ("s3", _check_s3(s3)),
    ):
        checks[name] = {"status": status, "detail": detail}

    ok = all(c["status"] == "ok" for c in checks.values())
    return JSONResponse(status_code=200 if ok else 503, content={"ok": ok, "checks": checks})
