"""
Pytest fixtures for the job tracker API.
"""

import os

# IMPORTANT: Set environment variables BEFORE any imports from jobtracker
# so Settings (and the module-level engine) are built for tests.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LLM_PROVIDER"] = "claude"
os.environ["LLM_API_KEY"] = "test-llm-key"
os.environ["RAPIDAPI_KEY"] = "test-rapidapi-key"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from fastapi.testclient import TestClient
from langchain_core.language_models.fake_chat_models import FakeListChatModel
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from jobtracker.database import Base, get_db, make_engine
from jobtracker.main import app
from jobtracker.services import llm


@pytest.fixture
def engine():
    """Fresh in-memory database per test; StaticPool shares one connection."""
    engine = make_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    """FastAPI test client wired to the test database."""
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def _register(client: TestClient, email: str) -> dict:
    response = client.post(
        "/api/auth/register",
        json={"email": email, "password": "correct-horse-battery", "name": email.split("@")[0]},
    )
    assert response.status_code == 201, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def auth_headers(client):
    """Authentication headers for the primary test user."""
    return _register(client, "alice@example.com")


@pytest.fixture
def other_headers(client):
    """A second user, for ownership checks."""
    return _register(client, "bob@example.com")


@pytest.fixture
def make_job(client, auth_headers):
    """Save a manual job for the primary user and return its JSON."""
    def _make(headers=None, **overrides):
        payload = {
            "title": "Backend Engineer",
            "company": "Acme",
            "location": "Remote",
            "description": "Build APIs in Python.",
            "job_type": "full-time",
        }
        payload.update(overrides)
        response = client.post("/api/jobs", json=payload, headers=headers or auth_headers)
        assert response.status_code == 201, response.text
        return response.json()
    return _make


@pytest.fixture
def make_application(client, auth_headers, make_job):
    def _make(status="saved", headers=None, **job_overrides):
        headers = headers or auth_headers
        job = make_job(headers=headers, **job_overrides)
        response = client.post(
            "/api/applications", json={"job_id": job["id"], "status": status}, headers=headers
        )
        assert response.status_code == 201, response.text
        return response.json()
    return _make


@pytest.fixture
def make_resume(client, auth_headers):
    def _make(name="Main", raw_text="Jane Doe\nSenior Python developer, 8 years.", headers=None):
        response = client.post(
            "/api/resumes", json={"name": name, "raw_text": raw_text}, headers=headers or auth_headers
        )
        assert response.status_code == 201, response.text
        return response.json()
    return _make


@pytest.fixture
def fake_llm(monkeypatch):
    """
    Replace the chat model with LangChain's FakeListChatModel.

    Call the fixture with the replies the model should give, in order.
    """
    def _install(*responses):
        model = FakeListChatModel(responses=list(responses))
        monkeypatch.setattr(llm, "get_llm", lambda **kwargs: model)
        return model
    return _install
