"""
Derived case views.

Pure functions over one user's full case collection. No I/O, no pagination.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Union

from app.db.models import CasePriority, CaseStatus, CaseType
from app.db.schemas import CaseRecord
from app.services.case_repository import naive_utc

CLOSED_STATUSES = frozenset({CaseStatus.DISPOSED, CaseStatus.ARCHIVED, CaseStatus.CLOSED})
URGENT_PRIORITIES = frozenset({CasePriority.URGENT, CasePriority.HIGH})

SEARCH_FIELDS = ("title", "cnr_number", "petitioner", "respondent")


def filter_by_search(cases: Iterable[CaseRecord], term: Optional[str]) -> List[CaseRecord]:
    """Case-insensitive substring match on any of title, CNR, petitioner, respondent."""
    needle = (term or "").strip().lower()
    if not needle:
        return list(cases)
    return [
        c for c in cases
        if any(needle in (getattr(c, field) or "").lower() for field in SEARCH_FIELDS)
    ]


def filter_by_status(
    cases: Iterable[CaseRecord], status: Union[CaseStatus, str, None]
) -> List[CaseRecord]:
    if not status:
        return list(cases)
    return [c for c in cases if c.status == status]


def filter_by_type(
    cases: Iterable[CaseRecord], case_type: Union[CaseType, str, None]
) -> List[CaseRecord]:
    if not case_type:
        return list(cases)
    return [c for c in cases if c.case_type == case_type]


def apply_filters(
    cases: Iterable[CaseRecord],
    search: Optional[str] = None,
    status: Union[CaseStatus, str, None] = None,
    case_type: Union[CaseType, str, None] = None,
) -> List[CaseRecord]:
    result = filter_by_search(cases, search)
    result = filter_by_status(result, status)
    return filter_by_type(result, case_type)


def open_cases(cases: Iterable[CaseRecord]) -> List[CaseRecord]:
    return [c for c in cases if c.status not in CLOSED_STATUSES]


def archived_cases(cases: Iterable[CaseRecord]) -> List[CaseRecord]:
    return [c for c in cases if c.status in CLOSED_STATUSES]


def urgent_cases(cases: Iterable[CaseRecord]) -> List[CaseRecord]:
    return [c for c in cases if c.priority in URGENT_PRIORITIES]


def upcoming_hearings(
    cases: Iterable[CaseRecord], now: Optional[datetime] = None
) -> List[CaseRecord]:
    """
    Cases whose next hearing is at or after ``now``, soonest first.
    Past hearings are not upcoming.
    """
    now = naive_utc(now) if now is not None else datetime.utcnow()
    upcoming = [
        c for c in cases
        if c.next_hearing is not None and naive_utc(c.next_hearing) >= now
    ]
    return sorted(upcoming, key=lambda c: naive_utc(c.next_hearing))


def summarize(cases: Iterable[CaseRecord], now: Optional[datetime] = None) -> Dict[str, Any]:
    cases = list(cases)
    views = {
        "openCases": open_cases(cases),
        "archivedCases": archived_cases(cases),
        "urgentCases": urgent_cases(cases),
        "upcomingHearings": upcoming_hearings(cases, now=now),
    }
    counts = {name: len(items) for name, items in views.items()}
    counts["total"] = len(cases)
    return {**views, "counts": counts}
