"""
Shared fixtures: an in-memory database, a record store around it, and an
API client whose summary provider is an httpx.MockTransport.
"""
import copy

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from tracker.config import AISettings
from tracker.database import create_app_engine, get_db, init_db
from tracker.main import app
from tracker.rate_limit import limiter
from tracker.services import ai_prompts
from tracker.services.ai_service import AIService, get_ai_service
from tracker.store import RecordStore


def completion(content):
    """A minimal chat-completion response body."""
    return {"choices": [{"index": 0, "message": {"role": "assistant", "content": content}}]}


class FakeProvider:
    """Stands in for the chat-completions endpoint and records what it was sent."""

    def __init__(self):
        self.status_code = 200
        self.body = completion("Great progress! Keep going 🚀")
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.body)


def make_service(handler, **overrides):
    """An AIService with a test key that talks to `handler` instead of the network."""
    options = {"ai_enabled": True, "deepinfra_api_key": "test-key"}
    options.update(overrides)
    return AIService(AISettings(**options), transport=httpx.MockTransport(handler))


@pytest.fixture
def engine():
    """A fresh in-memory database with every table created."""
    engine = create_app_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def store(db_session):
    return RecordStore(db_session)


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def ai(provider):
    return make_service(provider)


@pytest.fixture
def client(session_factory, ai):
    """API client bound to the in-memory database and the fake provider."""
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_ai_service] = lambda: ai
    limiter.enabled = False
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        limiter.enabled = True


@pytest.fixture(autouse=True)
def restore_prompts():
    """Prompt edits made through the API must not leak between tests."""
    saved = copy.deepcopy(ai_prompts.ALL_PROMPTS)
    yield
    ai_prompts.ALL_PROMPTS.clear()
    ai_prompts.ALL_PROMPTS.update(saved)
