import io
import json
import os
import pathlib
import tempfile

import fakeredis
import pytest

# Settings are read at import time, so the environment has to be ready first.
if not os.getenv("DATABASE_URL"):
    _temp_dir = tempfile.mkdtemp(prefix="casedesk-tests-")
    os.environ["DATABASE_URL"] = f"sqlite:///{pathlib.Path(_temp_dir) / 'pytest.db'}"
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("AWS_REGION", "ap-south-1")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
os.environ.setdefault("LOG_LEVEL", "WARNING")


class FakeBedrockClient:
    """Stands in for the bedrock-runtime client; records every request body."""

    def __init__(self, text="Generated legal text."):
        self.text = text
        self.calls = []
        self.error = None

    def invoke_model(self, modelId, body):
        self.calls.append({"modelId": modelId, "body": json.loads(body)})
        if self.error is not None:
            raise self.error
        payload = {
            "content": [{"type": "text", "text": self.text}],
            "usage": {"input_tokens": 10, "output_tokens": 20},
        }
        return {"body": io.BytesIO(json.dumps(payload).encode("utf-8"))}


class FakeS3Client:
    def __init__(self):
        self.objects = {}

    def put_object(self, Bucket, Key, Body, ContentType, Metadata):
        self.objects[(Bucket, Key)] = {"body": Body, "content_type": ContentType}
        return {"ETag": '"etag"'}

    def generate_presigned_url(self, operation, Params, ExpiresIn):
        return f"https://{Params['Bucket']}.s3.example.com/{Params['Key']}?expires={ExpiresIn}"

    def delete_object(self, Bucket, Key):
        self.objects.pop((Bucket, Key), None)
        return {}

    def head_bucket(self, Bucket):
        return {}


@pytest.fixture()
def db_session():
    from app.db import Base, SessionLocal, engine

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


def _make_user(db_session, email, name):
    from app.db.models import User

    user = User(email=email, full_name=name, preferences={})
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture()
def user(db_session):
    return _make_user(db_session, "advocate@example.com", "Asha Menon")


@pytest.fixture()
def other_user(db_session):
    return _make_user(db_session, "other@example.com", "Ravi Nair")


def bearer(user):
    from app.core.security import create_access_token

    return {"Authorization": f"Bearer {create_access_token(str(user.id))}"}


@pytest.fixture()
def auth_headers(user):
    return bearer(user)


@pytest.fixture()
def bedrock_client():
    return FakeBedrockClient()


@pytest.fixture()
def s3_client():
    return FakeS3Client()


@pytest.fixture()
def redis_client():
    client = fakeredis.FakeRedis(server=fakeredis.FakeServer())
    yield client
    client.flushall()


@pytest.fixture()
def api_client(db_session, bedrock_client, s3_client, redis_client):
    from fastapi.testclient import TestClient

    from app.db import get_db
    from app.main import app
    from app.services.ai_service import AIService, get_ai_service
    from app.services.rate_limit_service import IPRateLimiter, get_rate_limiter
    from app.services.s3_service import S3Service, get_s3_service

    ai_service = AIService(client=bedrock_client)
    s3_service = S3Service(client=s3_client, bucket="test-bucket")
    limiter = IPRateLimiter(client=redis_client)

    def _get_test_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_test_db
    app.dependency_overrides[get_ai_service] = lambda: ai_service
    app.dependency_overrides[get_s3_service] = lambda: s3_service
    app.dependency_overrides[get_rate_limiter] = lambda: limiter
    client = TestClient(app)
    try:
        yield client
    finally:
        app.dependency_overrides.clear()
