from __future__ import annotations

import uuid
from datetime import datetime, timedelta

from app.db.models import CasePriority, CaseStatus, CaseType
from app.db.schemas import CaseRecord
from app.services import case_views

NOW = datetime(2026, 10, 19, 9, 0)


def _case(title, **kwargs):
    return CaseRecord(id=uuid.uuid4(), title=title, **kwargs)


def test_open_and_archived_partition_the_collection():
    cases = [_case(f"case {status.value}", status=status) for status in CaseStatus]

    open_ids = {c.id for c in case_views.open_cases(cases)}
    archived_ids = {c.id for c in case_views.archived_cases(cases)}

    assert open_ids.isdisjoint(archived_ids)
    assert open_ids | archived_ids == {c.id for c in cases}
    assert {c.status for c in case_views.archived_cases(cases)} == {
        CaseStatus.DISPOSED,
        CaseStatus.ARCHIVED,
        CaseStatus.CLOSED,
    }


def test_summary_counts_for_small_practice():
    cases = [
        _case("Writ petition", status=CaseStatus.OPEN, priority=CasePriority.URGENT),
        _case("Partition suit", status=CaseStatus.HEARING, priority=CasePriority.LOW),
        _case("Old appeal", status=CaseStatus.DISPOSED, priority=CasePriority.HIGH),
    ]

    summary = case_views.summarize(cases, now=NOW)

    assert summary["counts"] == {
        "openCases": 2,
        "archivedCases": 1,
        "urgentCases": 2,
        "upcomingHearings": 0,
        "total": 3,
    }


def test_upcoming_hearings_sorted_soonest_first_and_excludes_past():
    later = _case("Later", next_hearing=NOW + timedelta(days=10))
    sooner = _case("Sooner", next_hearing=NOW + timedelta(days=1))
    exactly_now = _case("Now", next_hearing=NOW)
    past = _case("Past", next_hearing=NOW - timedelta(minutes=1))
    unscheduled = _case("Unscheduled")

    upcoming = case_views.upcoming_hearings([later, past, sooner, unscheduled, exactly_now], now=NOW)

    assert [c.title for c in upcoming] == ["Now", "Sooner", "Later"]


def test_search_matches_any_party_or_cnr_case_insensitively():
    cases = [
        _case("Kumar v. State", cnr_number="KLHC010000012026"),
        _case("Bank recovery", petitioner="Federal Bank", respondent="R. Menon"),
        _case("Tenancy dispute"),
    ]

    assert [c.title for c in case_views.filter_by_search(cases, "klhc01")] == ["Kumar v. State"]
    assert [c.title for c in case_views.filter_by_search(cases, "menon")] == ["Bank recovery"]
    assert len(case_views.filter_by_search(cases, "  ")) == 3


def test_apply_filters_combines_search_status_and_type():
    cases = [
        _case("Cheque bounce 1", case_type=CaseType.CHEQUE_BOUNCE, status=CaseStatus.OPEN),
        _case("Cheque bounce 2", case_type=CaseType.CHEQUE_BOUNCE, status=CaseStatus.DISPOSED),
        _case("Cheque forgery", case_type=CaseType.CRIMINAL, status=CaseStatus.OPEN),
    ]

    result = case_views.apply_filters(
        cases, search="cheque", status=CaseStatus.OPEN, case_type=CaseType.CHEQUE_BOUNCE
    )

    assert [c.title for c in result] == ["Cheque bounce 1"]
