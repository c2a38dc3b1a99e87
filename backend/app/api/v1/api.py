"""
Main API router aggregator
"""
from fastapi import APIRouter

from app.api.v1.endpoints import (
    ai_assistant,
    case_tracker,
    cases,
    drafts,
    health,
    notices,
    notifications,
    research,
    summarizer,
    uploads,
)

api_router = APIRouter()

# Include routers
api_router.include_router(cases.router, prefix="/cases", tags=["Cases"])
api_router.include_router(case_tracker.router, prefix="/case-tracker", tags=["Case Tracker"])
api_router.include_router(drafts.router, prefix="/drafts", tags=["Drafts"])
api_router.include_router(notices.router, prefix="/notices", tags=["Notices"])
api_router.include_router(research.router, prefix="/research", tags=["Research"])
api_router.include_router(summarizer.router, prefix="/summarizer", tags=["Judgment Summarizer"])
api_router.include_router(ai_assistant.router, prefix="/ai-assistant", tags=["AI Assistant"])
api_router.include_router(uploads.router, prefix="/uploads", tags=["Uploads"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
api_router.include_router(health.router, prefix="/health", tags=["Health"])
