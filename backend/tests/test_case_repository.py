from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

from app.db import engine
from app.db.models import (
    ActivityType,
    Case,
    CaseActivity,
    CasePriority,
    CaseStatus,
    CaseTracker,
    CaseType,
    Draft,
    Notice,
    UploadedFile,
)
from app.services import case_repository


def _tracker(**overrides):
    values = dict(
        id=uuid.uuid4(),
        user_id=uuid.uuid4(),
        party_name="Meera Pillai",
        cnr="KLHC010012342024",
        court="High Court of Kerala",
        status="pending",
        next_date=datetime(2026, 11, 5, 10, 0),
        details={"caseType": "civil", "respondent": "State of Kerala"},
        last_update=datetime(2026, 10, 1),
        created_at=datetime(2026, 9, 1),
        updated_at=None,
    )
    values.update(overrides)
    return CaseTracker(**values)


def test_map_tracker_row_normalizes_legacy_shape():
    row = _tracker()

    record = case_repository.map_tracker_row(row, {"activities": 3, "hearings": 1, "documents": 2})

    assert record.source == case_repository.SOURCE_LEGACY
    assert record.title == "Meera Pillai"
    assert record.petitioner == "Meera Pillai"
    assert record.respondent == "State of Kerala"
    assert record.case_type == CaseType.CIVIL
    assert record.status == CaseStatus.PENDING
    assert record.priority == CasePriority.MEDIUM
    assert record.next_hearing == datetime(2026, 11, 5, 10, 0)
    assert record.updated_at == datetime(2026, 10, 1)
    assert (record.activities_count, record.hearings_count, record.documents_count) == (3, 1, 2)


def test_map_tracker_row_tolerates_unknown_status_and_missing_details():
    record = case_repository.map_tracker_row(_tracker(status="adjourned sine die", details=None, party_name=None))

    assert record.status == CaseStatus.OPEN
    assert record.case_type == CaseType.GENERAL
    assert record.title == case_repository.UNTITLED_CASE
    assert record.activities_count == 0


def test_canonical_and_legacy_rows_map_to_the_same_shape():
    case = Case(
        id=uuid.uuid4(),
        user_id=uuid.uuid4(),
        title="Meera Pillai",
        case_type=CaseType.CIVIL,
        status=CaseStatus.PENDING,
        priority=CasePriority.MEDIUM,
        tags=None,
        created_at=datetime(2026, 9, 1),
        updated_at=datetime(2026, 10, 1),
    )

    canonical = case_repository.map_case_row(case)
    legacy = case_repository.map_tracker_row(_tracker())

    assert set(canonical.model_dump()) == set(legacy.model_dump())
    assert canonical.tags == []
    assert canonical.source == case_repository.SOURCE_CASES


def test_naive_utc_converts_aware_values():
    ist = timezone(timedelta(hours=5, minutes=30))
    assert case_repository.naive_utc(datetime(2026, 11, 5, 15, 30, tzinfo=ist)) == datetime(2026, 11, 5, 10, 0)
    assert case_repository.naive_utc(datetime(2026, 11, 5)) == datetime(2026, 11, 5)
    assert case_repository.naive_utc(None) is None


def test_load_reads_legacy_rows_only_when_no_canonical_rows(db_session, user):
    db_session.add(_tracker(user_id=user.id, party_name="Old Matter"))
    db_session.commit()

    legacy = case_repository.load(db_session, user.id)
    assert [c.title for c in legacy] == ["Old Matter"]
    assert legacy[0].source == case_repository.SOURCE_LEGACY

    case_repository.create(db_session, user.id, {"title": "New Matter"})

    current = case_repository.load(db_session, user.id)
    assert [c.title for c in current] == ["New Matter"]
    assert current[0].source == case_repository.SOURCE_CASES


def test_load_orders_by_most_recent_update_and_scopes_to_owner(db_session, user, other_user):
    db_session.add_all([
        Case(user_id=user.id, title="Older", updated_at=datetime(2026, 1, 1)),
        Case(user_id=user.id, title="Newer", updated_at=datetime(2026, 6, 1)),
        Case(user_id=other_user.id, title="Someone else's"),
    ])
    db_session.commit()

    titles = [c.title for c in case_repository.load(db_session, user.id)]

    assert titles == ["Newer", "Older"]


def test_load_degrades_to_empty_list_on_storage_error(db_session, user):
    Case.__table__.drop(bind=engine)
    assert case_repository.load(db_session, user.id) == []


def test_project_counts(db_session, user):
    case = case_repository.create(db_session, user.id, {"title": "Counted"})
    for activity_type in (ActivityType.CASE_CREATED, ActivityType.HEARING_ADDED, ActivityType.HEARING_ADDED):
        db_session.add(
            CaseActivity(case_id=case.id, user_id=user.id, type=activity_type, title="t", content="")
        )
    db_session.add(Draft(user_id=str(user.id), case_id=case.id, type="rent", title="d", content="c"))
    db_session.add(Notice(user_id=str(user.id), case_id=case.id, title="n", content="c", recipient="r"))
    db_session.add(
        UploadedFile(
            user_id=str(user.id), case_id=case.id, filename="f.pdf", s3_bucket="b", s3_key="uploads/f.pdf"
        )
    )
    db_session.commit()
    empty_id = uuid.uuid4()

    counts = case_repository.project_counts(db_session, [case.id, empty_id])

    assert counts[case.id] == {"activities": 3, "hearings": 2, "documents": 3}
    assert counts[empty_id] == {"activities": 0, "hearings": 0, "documents": 0}
    assert case_repository.project_counts(db_session, []) == {}


def test_find_owned_covers_both_sources_and_hides_foreign_cases(db_session, user, other_user):
    mine = case_repository.create(db_session, user.id, {"title": "Mine"})
    tracker = _tracker(user_id=user.id)
    db_session.add(tracker)
    db_session.commit()

    assert case_repository.find_owned(db_session, user.id, mine.id).source == case_repository.SOURCE_CASES
    assert case_repository.find_owned(db_session, user.id, tracker.id).source == case_repository.SOURCE_LEGACY
    assert case_repository.find_owned(db_session, other_user.id, mine.id) is None
    assert case_repository.get(db_session, other_user.id, mine.id) is None


def test_update_ignores_null_required_fields_and_stores_naive_utc(db_session, user):
    case = case_repository.create(
        db_session, user.id, {"title": "Bail application", "priority": CasePriority.HIGH}
    )
    hearing = datetime(2026, 12, 1, 9, 0, tzinfo=timezone.utc)

    updated = case_repository.update(
        db_session,
        user.id,
        case.id,
        {"title": None, "status": CaseStatus.HEARING, "next_hearing": hearing, "tags": None},
    )

    assert updated.title == "Bail application"
    assert updated.status == CaseStatus.HEARING
    assert updated.next_hearing == datetime(2026, 12, 1, 9, 0)
    assert updated.tags == []
    assert updated.priority == CasePriority.HIGH


def test_update_and_delete_refuse_other_owners(db_session, user, other_user):
    case = case_repository.create(db_session, user.id, {"title": "Private"})

    assert case_repository.update(db_session, other_user.id, case.id, {"title": "Hijacked"}) is None
    assert case_repository.delete(db_session, other_user.id, case.id) is False
    assert case_repository.get(db_session, user.id, case.id).title == "Private"


def test_delete_leaves_activities_behind(db_session, user):
    case = case_repository.create(db_session, user.id, {"title": "Short lived"})
    db_session.add(
        CaseActivity(case_id=case.id, user_id=user.id, type=ActivityType.CASE_CREATED, title="t", content="")
    )
    db_session.commit()

    assert case_repository.delete(db_session, user.id, case.id) is True
    assert case_repository.get(db_session, user.id, case.id) is None
    assert db_session.query(CaseActivity).filter(CaseActivity.case_id == case.id).count() == 1
