from __future__ import annotations

import uuid

from botocore.exceptions import ClientError
from sqlalchemy.exc import OperationalError

from app.core.config import settings
from app.db.models import ActivityType, CaseActivity, ChatSession, Draft, Notice, Summary, UploadedFile
from conftest import bearer


def _create_case(api_client, headers, title="Varghese v. Union of India"):
    res = api_client.post("/api/v1/cases", json={"title": title, "court": "High Court of Kerala"}, headers=headers)
    assert res.status_code == 201, res.text
    return res.json()["case"]["id"]


def _activities(db_session, case_id, activity_type):
    return (
        db_session.query(CaseActivity)
        .filter(CaseActivity.case_id == uuid.UUID(case_id), CaseActivity.type == activity_type)
        .all()
    )


# ============================================================================
# Drafts
# ============================================================================

def test_anonymous_drafts_are_limited_per_day(api_client, db_session):
    payload = {"type": "rent", "inputs": {"landlordName": "K. Varghese"}}

    statuses = [api_client.post("/api/v1/drafts", json=payload).status_code for _ in range(4)]

    assert statuses == [200, 200, 200, 429]
    blocked = api_client.post("/api/v1/drafts", json=payload)
    assert blocked.json()["code"] == "RATE_LIMIT_EXCEEDED"
    assert blocked.json()["error"].startswith("Daily limit reached. Try again in ")
    assert int(blocked.headers["Retry-After"]) > 0
    assert db_session.query(Draft).filter(Draft.user_id == "ip-testclient").count() == 3


def test_quota_is_checked_before_body_validation(api_client):
    for _ in range(3):
        assert api_client.post("/api/v1/drafts", json={}).status_code == 400

    assert api_client.post("/api/v1/drafts", json={}).status_code == 429


def test_quota_is_keyed_on_forwarded_client_ip(api_client):
    for _ in range(3):
        api_client.post("/api/v1/drafts", json={"type": "nda"}, headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.1"})

    blocked = api_client.post("/api/v1/drafts", json={"type": "nda"}, headers={"X-Forwarded-For": "203.0.113.7"})
    other = api_client.post("/api/v1/drafts", json={"type": "nda"}, headers={"X-Forwarded-For": "198.51.100.2"})

    assert blocked.status_code == 429
    assert other.status_code == 200


def test_signed_in_drafts_skip_quota_and_link_to_case(api_client, auth_headers, db_session):
    case_id = _create_case(api_client, auth_headers)

    for _ in range(5):
        res = api_client.post(
            "/api/v1/drafts",
            json={"type": "rent", "formData": {"tenantName": "S. Iyer"}, "caseId": case_id},
            headers=auth_headers,
        )
        assert res.status_code == 200

    body = res.json()
    assert body["caseId"] == case_id
    assert body["title"].startswith("Rental Agreement - ")
    assert "S. Iyer" in body["content"]
    rows = _activities(db_session, case_id, ActivityType.DRAFT_CREATED)
    assert len(rows) == 5
    assert rows[0].content == "Created Rental Agreement document"

    listed = api_client.get("/api/v1/drafts", params={"caseId": case_id}, headers=auth_headers).json()
    assert len(listed["drafts"]) == 5


def test_anonymous_draft_never_links_to_a_case(api_client, auth_headers, db_session):
    case_id = _create_case(api_client, auth_headers)

    res = api_client.post("/api/v1/drafts", json={"type": "affidavit", "caseId": case_id})

    assert res.status_code == 200
    assert res.json()["caseId"] is None
    assert _activities(db_session, case_id, ActivityType.DRAFT_CREATED) == []


def test_draft_for_someone_elses_case_is_not_found(api_client, auth_headers, other_user):
    case_id = _create_case(api_client, bearer(other_user))

    res = api_client.post("/api/v1/drafts", json={"type": "rent", "caseId": case_id}, headers=auth_headers)

    assert res.status_code == 404


# ============================================================================
# Notices
# ============================================================================

def test_notice_requires_recipient_and_subject(api_client, bedrock_client):
    res = api_client.post("/api/v1/notices", json={"recipient": "Mr. Rao", "subject": "  "})

    assert res.status_code == 400
    assert res.json()["error"] == "Recipient and subject are required"
    assert bedrock_client.calls == []


def test_notice_generation_for_signed_in_user(api_client, auth_headers, user, bedrock_client, db_session):
    bedrock_client.text = "LEGAL NOTICE\n\nTo, Mr. Rao ..."
    case_id = _create_case(api_client, auth_headers)

    res = api_client.post(
        "/api/v1/notices",
        json={
            "noticeType": "Cheque Bounce",
            "recipient": "Mr. Rao",
            "subject": "Dishonour of cheque no. 004512",
            "amount": "250000",
            "caseId": case_id,
        },
        headers=auth_headers,
    )

    assert res.status_code == 200
    body = res.json()
    assert body["notice"] == "LEGAL NOTICE\n\nTo, Mr. Rao ..."
    assert body["subject"] == "Dishonour of cheque no. 004512"

    (call,) = bedrock_client.calls
    assert call["modelId"] == settings.BEDROCK_PRO_MODEL_ID
    assert call["body"]["max_tokens"] == 2000
    assert call["body"]["temperature"] == 0.3
    assert "legal notices" in call["body"]["system"]
    prompt = call["body"]["messages"][0]["content"]
    assert "Amount: ₹250000" in prompt
    assert "Case Reference: Varghese v. Union of India" in prompt

    (row,) = _activities(db_session, case_id, ActivityType.NOTICE_CREATED)
    assert row.title == "Notice to Mr. Rao"
    assert db_session.query(Notice).one().user_id == str(user.id)


def test_anonymous_notice_uses_free_tier_and_ip_owner(api_client, bedrock_client, db_session):
    res = api_client.post("/api/v1/notices", json={"recipient": "Landlord", "subject": "Deposit refund"})

    assert res.status_code == 200
    assert bedrock_client.calls[0]["modelId"] == settings.BEDROCK_MODEL_ID
    assert db_session.query(Notice).one().user_id == "ip-testclient"

    listed = api_client.get("/api/v1/notices").json()
    assert [n["subject"] for n in listed["notices"]] == ["Deposit refund"]


def test_ai_failure_surfaces_as_feature_error(api_client, bedrock_client, db_session):
    bedrock_client.error = ClientError(
        {"Error": {"Code": "ThrottlingException", "Message": "Too many requests"}}, "InvokeModel"
    )

    res = api_client.post("/api/v1/notices", json={"recipient": "Landlord", "subject": "Deposit refund"})

    assert res.status_code == 500
    assert res.json() == {"ok": False, "error": "Failed to generate notice", "code": "AI_SERVICE_ERROR"}
    assert db_session.query(Notice).count() == 0


# ============================================================================
# Research
# ============================================================================

def test_research_rejects_short_query(api_client, bedrock_client):
    res = api_client.post("/api/v1/research", json={"query": " a "})

    assert res.status_code == 400
    assert res.json()["error"] == "Please provide a valid search query"
    assert bedrock_client.calls == []


def test_research_with_case_context(api_client, auth_headers, bedrock_client, db_session):
    case_id = _create_case(api_client, auth_headers)

    res = api_client.post(
        "/api/v1/research",
        json={"query": "Limitation for writ against tax assessment", "caseId": case_id},
        headers=auth_headers,
    )

    assert res.status_code == 200
    assert res.json()["content"] == "Generated legal text."
    call = bedrock_client.calls[0]
    assert call["body"]["temperature"] == 0.5
    assert 'Case "Varghese v. Union of India"' in call["body"]["system"]
    assert len(_activities(db_session, case_id, ActivityType.RESEARCH_DONE)) == 1


# ============================================================================
# Summarizer
# ============================================================================

def test_summarizer_stores_summary_and_logs(api_client, auth_headers, bedrock_client, db_session):
    case_id = _create_case(api_client, auth_headers)
    judgment = "The appellant challenges the order of the Tribunal. " * 500

    res = api_client.post(
        "/api/v1/summarizer",
        json={"text": judgment, "title": "Appeal No. 12 of 2025", "caseId": case_id},
        headers=auth_headers,
    )

    assert res.status_code == 200
    prompt = bedrock_client.calls[0]["body"]["messages"][0]["content"]
    assert len(prompt) < len(judgment)
    assert bedrock_client.calls[0]["body"]["max_tokens"] == 1500
    assert db_session.query(Summary).one().original_text == judgment.strip()
    (row,) = _activities(db_session, case_id, ActivityType.SUMMARY_CREATED)
    assert row.title == "Summary: Appeal No. 12 of 2025"


def test_summarizer_validates_text_length(api_client):
    res = api_client.post("/api/v1/summarizer", json={"text": "short", "title": "T"})

    assert res.status_code == 400
    assert res.json()["code"] == "VALIDATION_ERROR"


# ============================================================================
# AI assistant
# ============================================================================

def test_chat_requires_sign_in(api_client, bedrock_client):
    res = api_client.post("/api/v1/ai-assistant/chat", json={"question": "What is anticipatory bail?"})

    assert res.status_code == 401
    assert bedrock_client.calls == []


def test_chat_stores_session_and_logs_to_case(api_client, auth_headers, bedrock_client, db_session):
    case_id = _create_case(api_client, auth_headers)

    res = api_client.post(
        "/api/v1/ai-assistant/chat",
        json={"question": "Next steps after framing of issues?", "caseId": case_id},
        headers=auth_headers,
    )

    assert res.status_code == 200
    assert res.json()["answer"] == "Generated legal text."
    assert bedrock_client.calls[0]["modelId"] == settings.BEDROCK_PRO_MODEL_ID
    assert "Court: High Court of Kerala" in bedrock_client.calls[0]["body"]["system"]
    assert db_session.query(ChatSession).count() == 1
    (row,) = _activities(db_session, case_id, ActivityType.AI_CHAT)
    assert row.title == "Next steps after framing of issues?"
    assert row.feature.value == "AI_ASSISTANT"


# ============================================================================
# Uploads
# ============================================================================

def test_upload_stores_object_and_logs(api_client, auth_headers, s3_client, db_session):
    case_id = _create_case(api_client, auth_headers)

    res = api_client.post(
        "/api/v1/uploads",
        files={"file": ("Vakalat Nama.pdf", b"%PDF-1.4 test", "application/pdf")},
        data={"caseId": case_id},
        headers=auth_headers,
    )

    assert res.status_code == 201, res.text
    body = res.json()
    assert body["caseId"] == case_id
    assert body["size"] == len(b"%PDF-1.4 test")
    assert body["url"].startswith("https://test-bucket.s3.example.com/uploads/")
    ((bucket, key),) = s3_client.objects
    assert bucket == "test-bucket"
    assert key.endswith("/vakalat-nama.pdf")
    assert db_session.query(UploadedFile).one().s3_key == key
    assert len(_activities(db_session, case_id, ActivityType.DOCUMENT_UPLOADED)) == 1


def test_empty_upload_is_rejected(api_client, auth_headers, s3_client):
    res = api_client.post(
        "/api/v1/uploads",
        files={"file": ("empty.pdf", b"", "application/pdf")},
        headers=auth_headers,
    )

    assert res.status_code == 400
    assert res.json()["error"] == "File is empty"
    assert s3_client.objects == {}


def test_failed_upload_record_removes_stored_object(api_client, auth_headers, s3_client, db_session, monkeypatch):
    def broken_commit():
        raise OperationalError("INSERT INTO uploaded_files", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db_session, "commit", broken_commit)

    res = api_client.post(
        "/api/v1/uploads",
        files={"file": ("Vakalat Nama.pdf", b"%PDF-1.4 test", "application/pdf")},
        headers=auth_headers,
    )

    assert res.status_code == 500
    assert res.json() == {"ok": False, "error": "Upload failed", "code": "PERSISTENCE_ERROR"}
    assert s3_client.objects == {}
