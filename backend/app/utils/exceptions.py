"""
Custom exception classes

Each carries an optional machine-readable ``code`` that the API error
handlers copy into the response envelope.
"""
from typing import Optional

from fastapi import HTTPException


class AppHTTPException(HTTPException):
    code: Optional[str] = None

    def __init__(self, status_code: int, detail: str, code: Optional[str] = None, headers=None):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        if code is not None:
            self.code = code


class NotAuthenticatedError(AppHTTPException):
    """Raised when a session is required but missing or invalid"""
    code = "UNAUTHORIZED"

    def __init__(self, detail: str = "Unauthorized"):
        super().__init__(
            status_code=401,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class CaseNotFoundError(AppHTTPException):
    """Raised when a case doesn't exist or belongs to someone else"""
    code = "CASE_NOT_FOUND"

    def __init__(self, case_id: Optional[str] = None):
        # Same text for "missing" and "not yours"
        super().__init__(status_code=404, detail="Case not found")
        self.case_id = case_id


class NotFoundError(AppHTTPException):
    code = "NOT_FOUND"

    def __init__(self, what: str = "Resource"):
        super().__init__(status_code=404, detail=f"{what} not found")


class ValidationFailedError(AppHTTPException):
    """Raised for malformed or missing input"""
    code = "VALIDATION_ERROR"

    def __init__(self, detail: str):
        super().__init__(status_code=400, detail=detail)


class RateLimitExceededError(AppHTTPException):
    """Raised when the anonymous daily quota is used up"""
    code = "RATE_LIMIT_EXCEEDED"

    def __init__(self, retry_after_seconds: int, detail: str):
        super().__init__(
            status_code=429,
            detail=detail,
            headers={"Retry-After": str(max(retry_after_seconds, 0))},
        )
        self.retry_after_seconds = retry_after_seconds


class AIServiceError(AppHTTPException):
    """Raised when AI service fails"""
    code = "AI_SERVICE_ERROR"

    def __init__(self, reason: str = "AI service unavailable"):
        super().__init__(status_code=500, detail=reason)


class UploadFailedError(AppHTTPException):
    """Raised when S3 upload fails"""
    code = "UPLOAD_FAILED"

    def __init__(self, reason: str = "Unknown error"):
        super().__init__(status_code=500, detail=f"Upload failed: {reason}")


class PersistenceError(AppHTTPException):
    """Raised when the primary deliverable could not be stored"""
    code = "PERSISTENCE_ERROR"

    def __init__(self, detail: str):
        super().__init__(status_code=500, detail=detail)
