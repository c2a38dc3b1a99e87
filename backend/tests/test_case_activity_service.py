from __future__ import annotations

import uuid
from datetime import datetime

from app.db import engine
from app.db.models import ActivityType, Case, CaseActivity, CaseTracker, FeatureType
from app.services import case_activity_service as activity


def _seed_case(db_session, user, **kwargs):
    case = Case(user_id=user.id, title=kwargs.pop("title", "State v. Kumar"), **kwargs)
    db_session.add(case)
    db_session.commit()
    db_session.refresh(case)
    return case


def _seed_tracker(db_session, user, **kwargs):
    tracker = CaseTracker(user_id=user.id, party_name=kwargs.pop("party_name", "Legacy Party"), **kwargs)
    db_session.add(tracker)
    db_session.commit()
    db_session.refresh(tracker)
    return tracker


def test_missing_ids_are_skipped_without_writing(db_session, user):
    case = _seed_case(db_session, user)

    no_case = activity.record_activity(db_session, None, user.id, ActivityType.NOTE_ADDED, "t", "c")
    no_user = activity.record_activity(db_session, case.id, "", ActivityType.NOTE_ADDED, "t", "c")
    garbage = activity.record_activity(db_session, "not-a-uuid", user.id, ActivityType.NOTE_ADDED, "t", "c")

    for result in (no_case, no_user, garbage):
        assert not result
        assert result.channel == activity.CHANNEL_SKIPPED
    assert db_session.query(CaseActivity).count() == 0


def test_record_activity_persists_row_and_touches_case(db_session, user):
    stale = datetime(2020, 1, 1)
    case = _seed_case(db_session, user, updated_at=stale)

    result = activity.record_activity(
        db_session,
        str(case.id),
        str(user.id),
        type=ActivityType.NOTE_ADDED,
        feature=FeatureType.CASE_TRACKER,
        title="Note Added",
        content="Client called about the adjournment",
        metadata={"source": "phone"},
        reference_id=uuid.uuid4(),
    )

    assert result
    assert result.channel == activity.CHANNEL_ACTIVITY
    row = db_session.query(CaseActivity).one()
    assert row.case_id == case.id
    assert row.user_id == user.id
    assert row.type == ActivityType.NOTE_ADDED
    assert row.activity_metadata == {"source": "phone"}
    assert row.reference_id is not None

    db_session.refresh(case)
    assert case.updated_at > stale


def test_title_and_content_are_clamped(db_session, user):
    case = _seed_case(db_session, user)

    activity.record_activity(
        db_session, case.id, user.id, ActivityType.AI_CHAT, "q" * 250, "a" * 12000
    )

    row = db_session.query(CaseActivity).one()
    assert len(row.title) == 100
    assert len(row.content) == 10000


def test_activity_for_unknown_case_is_still_recorded(db_session, user):
    # case_id carries no foreign key; the row is an orphan, not an error
    result = activity.record_activity(
        db_session, uuid.uuid4(), user.id, ActivityType.NOTE_ADDED, "Note Added", "orphan"
    )
    assert result
    assert db_session.query(CaseActivity).count() == 1


def test_legacy_fallback_is_lossy_and_keeps_only_latest_event(db_session, user):
    tracker = _seed_tracker(
        db_session,
        user,
        details={"caseType": "CIVIL", "timeline": [{"event": "filed"}]},
    )
    CaseActivity.__table__.drop(bind=engine)

    first = activity.log_note_added(db_session, tracker.id, user.id, "first note")
    second = activity.log_note_added(db_session, tracker.id, user.id, "x" * 900)

    assert first and second
    assert second.channel == activity.CHANNEL_LEGACY

    db_session.expire_all()
    stored = db_session.query(CaseTracker).filter(CaseTracker.id == tracker.id).one()
    # Only the latest event survives, trimmed to the fallback length
    assert stored.details["lastActivity"]["type"] == "NOTE_ADDED"
    assert stored.details["lastActivity"]["content"] == "x" * 500
    assert "first note" not in str(stored.details)
    assert stored.details["caseType"] == "CIVIL"
    assert stored.details["timeline"] == [{"event": "filed"}]
    assert stored.last_update is not None


def test_legacy_fallback_without_tracker_row_reports_failure(db_session, user):
    CaseActivity.__table__.drop(bind=engine)

    result = activity.log_note_added(db_session, uuid.uuid4(), user.id, "nowhere to go")

    assert not result
    assert result.channel == activity.CHANNEL_LEGACY
    assert result.error == "case not found"


def test_feature_loggers_use_their_templates(db_session, user):
    case = _seed_case(db_session, user)
    draft_id = uuid.uuid4()

    activity.log_draft_created(db_session, case.id, user.id, "Rental Agreement", "Flat 4B", draft_id)
    activity.log_notice_created(db_session, case.id, user.id, "Cheque Bounce", "Mr. Rao", uuid.uuid4())
    activity.log_research(db_session, case.id, user.id, "section 138 NI Act " * 10, "result", uuid.uuid4())
    activity.log_document_uploaded(db_session, case.id, user.id, "vakalat.pdf", uuid.uuid4())

    rows = {r.type: r for r in db_session.query(CaseActivity).all()}
    draft = rows[ActivityType.DRAFT_CREATED]
    assert draft.title == "Draft: Flat 4B"
    assert draft.content == "Created Rental Agreement document"
    assert draft.feature == FeatureType.DRAFTS
    assert draft.reference_id == str(draft_id)
    assert draft.activity_metadata == {"draftType": "Rental Agreement"}

    assert rows[ActivityType.NOTICE_CREATED].title == "Notice to Mr. Rao"
    assert rows[ActivityType.RESEARCH_DONE].title.startswith("Research: section 138")
    assert len(rows[ActivityType.RESEARCH_DONE].title) == len("Research: ") + 80
    assert rows[ActivityType.DOCUMENT_UPLOADED].content == 'Document "vakalat.pdf" was uploaded to the case'


def test_hearing_logger_distinguishes_new_and_moved_hearings(db_session, user):
    case = _seed_case(db_session, user)

    activity.log_hearing_scheduled(db_session, case.id, user.id, datetime(2026, 11, 3, 10, 30))
    activity.log_hearing_scheduled(
        db_session, case.id, user.id, datetime(2026, 11, 20), previous=datetime(2026, 11, 3)
    )

    added = db_session.query(CaseActivity).filter(CaseActivity.type == ActivityType.HEARING_ADDED).one()
    moved = db_session.query(CaseActivity).filter(CaseActivity.type == ActivityType.HEARING_UPDATED).one()
    assert added.title == "Hearing on 03/11/2026"
    assert moved.content == "Next hearing moved from 03/11/2026 to 20/11/2026"


def test_list_activities_newest_first_and_limited(db_session, user):
    case = _seed_case(db_session, user)
    for day in range(1, 6):
        db_session.add(
            CaseActivity(
                case_id=case.id,
                user_id=user.id,
                type=ActivityType.NOTE_ADDED,
                title=f"note {day}",
                content="",
                created_at=datetime(2026, 10, day),
            )
        )
    db_session.commit()

    rows = activity.list_activities(db_session, case.id, limit=3)

    assert [r.title for r in rows] == ["note 5", "note 4", "note 3"]


def test_list_activities_degrades_to_empty(db_session, user):
    CaseActivity.__table__.drop(bind=engine)
    assert activity.list_activities(db_session, uuid.uuid4()) == []


def test_unexpected_error_is_reported_not_raised(db_session, user, monkeypatch):
    case = _seed_case(db_session, user)

    def broken_activity(**kwargs):
        raise RuntimeError("serializer exploded")

    monkeypatch.setattr(activity, "CaseActivity", broken_activity)

    result = activity.log_note_added(db_session, case.id, user.id, "still fine")

    assert not result
    assert result.channel == activity.CHANNEL_ACTIVITY
    assert result.error == "unexpected error"
