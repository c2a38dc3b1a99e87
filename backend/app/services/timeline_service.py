"""
Timeline presentation.

Turns activity rows (newest first, as the repository returns them) into
renderable entries. Order is never changed here.
"""
from __future__ import annotations

from datetime import date
from itertools import groupby
from typing import Iterable, Iterator, List, NamedTuple, Optional, Tuple

from app.db.schemas import TimelineEntry


class Presentation(NamedTuple):
    category: str
    icon: str
    color: str


DEFAULT_PRESENTATION = Presentation("history", "history", "bg-gray-100 text-gray-600")

PRESENTATION_BY_TYPE = {
    "AI_CHAT": Presentation("ai", "message-square", "bg-blue-100 text-blue-600"),
    "DRAFT_CREATED": Presentation("document", "file-text", "bg-green-100 text-green-600"),
    "SUMMARY_CREATED": Presentation("summary", "book-open", "bg-purple-100 text-purple-600"),
    "DOCUMENT_UPLOADED": Presentation("document", "file-text", "bg-gray-100 text-gray-600"),
    "HEARING_ADDED": Presentation("hearing", "calendar", "bg-yellow-100 text-yellow-600"),
    "HEARING_UPDATED": Presentation("hearing", "calendar", "bg-gray-100 text-gray-600"),
    "STATUS_CHANGED": Presentation("status", "target", "bg-gray-100 text-gray-600"),
    "NOTE_ADDED": Presentation("note", "edit", "bg-gray-100 text-gray-600"),
    "RESEARCH_DONE": Presentation("research", "book-open", "bg-indigo-100 text-indigo-600"),
    "NOTICE_CREATED": Presentation("notice", "bell", "bg-orange-100 text-orange-600"),
    "CASE_CREATED": Presentation("case", "briefcase", "bg-gray-900 text-white"),
    "CASE_UPDATED": Presentation("case", "edit", "bg-gray-100 text-gray-600"),
}


def _key(value) -> str:
    return getattr(value, "value", value) or ""


def presentation_for(activity_type) -> Presentation:
    """Unknown types fall back to the generic history presentation."""
    return PRESENTATION_BY_TYPE.get(_key(activity_type), DEFAULT_PRESENTATION)


def _render(activity, is_last: bool, content_limit: Optional[int]) -> TimelineEntry:
    presentation = presentation_for(activity.type)
    content = activity.content or ""
    if content_limit is not None:
        content = content[:content_limit]
    feature = _key(activity.feature) or None
    return TimelineEntry(
        id=activity.id,
        type=_key(activity.type),
        feature=feature,
        title=activity.title,
        content=content,
        metadata=activity.activity_metadata,
        reference_id=activity.reference_id,
        category=presentation.category,
        icon=presentation.icon,
        color=presentation.color,
        created_at=activity.created_at,
        is_last=is_last,
    )


def iter_timeline(activities: Iterable, content_limit: Optional[int] = None) -> Iterator[TimelineEntry]:
    """
    Lazily render each activity once, in input order. One item of lookahead
    marks the final entry with ``is_last``.
    """
    iterator = iter(activities)
    try:
        current = next(iterator)
    except StopIteration:
        return
    for following in iterator:
        yield _render(current, False, content_limit)
        current = following
    yield _render(current, True, content_limit)


def group_by_day(entries: Iterable[TimelineEntry]) -> Iterator[Tuple[date, List[TimelineEntry]]]:
    """Consecutive entries sharing a calendar date."""
    for day, group in groupby(entries, key=lambda e: e.created_at.date()):
        yield day, list(group)
