"""
Active case pointer.

The case a user is currently working in is session state. It is read and
written through ``ActiveCaseStore`` so the persistence side-channel can be
swapped; the default keeps it in ``users.preferences``.
"""
from __future__ import annotations

import uuid
from typing import Iterable, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.logger import logger, sanitize_for_log
from app.db.models import User
from app.db.schemas import CaseRecord

PREFERENCE_KEY = "activeCaseId"


class ActiveCaseStore(Protocol):
    def get(self, user: User) -> Optional[str]: ...

    def set(self, user: User, case_id: Optional[str]) -> bool: ...


class PreferencesActiveCaseStore:
    """Stores the pointer under ``users.preferences["activeCaseId"]``."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user: User) -> Optional[str]:
        prefs = user.preferences if isinstance(user.preferences, dict) else {}
        value = prefs.get(PREFERENCE_KEY)
        return str(value) if value else None

    def set(self, user: User, case_id: Optional[str]) -> bool:
        prefs = dict(user.preferences or {})
        if case_id:
            prefs[PREFERENCE_KEY] = str(case_id)
        else:
            prefs.pop(PREFERENCE_KEY, None)
        try:
            user.preferences = prefs
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to save active case for user %s: %s", user.id, sanitize_for_log(e))
            return False
        return True


def resolve_active_case(
    store: ActiveCaseStore, user: User, cases: Iterable[CaseRecord]
) -> Optional[CaseRecord]:
    """A stored id only counts while it is still one of the caller's cases."""
    saved = store.get(user)
    if not saved:
        return None
    for case in cases:
        if str(case.id) == saved:
            return case
    return None


def clear_if_active(store: ActiveCaseStore, user: User, case_id: uuid.UUID) -> None:
    if store.get(user) == str(case_id):
        store.set(user, None)
