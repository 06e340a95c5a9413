"""Shared test fixtures for the AdvisorFlow test suite.

All tests run against an in-memory SQLite database (one shared connection
via StaticPool). Tables are created once and emptied before each test.
Generators are scripted fakes; nothing talks to a model provider.
"""

import os

# Use the in-memory database and plain logs before any app imports.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_FORMAT"] = "text"
os.environ["GENERATION_MODEL"] = ""
os.environ["IMAGE_MODEL"] = ""
os.environ["SELF_REVIEW_POLICY"] = "deny"

import pytest
from fastapi.testclient import TestClient

from advisorflow.api.generators import get_image_generator, get_text_generator
from advisorflow.core.auth import Actor
from advisorflow.database import Base, SessionLocal, engine, get_db, init_db
from advisorflow.main import app
from advisorflow.models import ContentStatus, Generator, UserRole
from advisorflow.schemas.generation import GeneratedContent
from advisorflow.schemas.request import RequestCreate
from advisorflow.services import RequestService, VersionService

init_db()

ORG = "org-legacy"
OTHER_ORG = "org-elsewhere"

SAMPLE_BODY = (
    "<h2>Planning Ahead</h2>\n"
    "<p>Estate planning protects your family &amp; legacy for decades.</p>\n"
    "<p>Diversification reduces <strong>concentration risk</strong> over time.</p>"
)


@pytest.fixture(autouse=True)
def _clean_tables():
    """Empty every table before each test (children first)."""
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())
    yield


@pytest.fixture()
def db():
    """Per-test database session."""
    session = SessionLocal()
    yield session
    session.close()


class FakeGenerator:
    """Scripted ContentGenerator.

    Each call pops the next scripted item: a GeneratedContent is returned, an
    exception is raised, a callable is called with the payload. When the
    script runs out, ``default`` is used. Every payload is recorded.
    """

    def __init__(self, *script, default=None):
        self.script = list(script)
        self.default = default or GeneratedContent(
            title="Protecting Family Wealth",
            body="<p>Generated article body about preserving wealth across generations.</p>",
            disclaimers="Investment advice is subject to market risk.",
        )
        self.calls = []

    async def generate(self, payload):
        self.calls.append(payload)
        item = self.script.pop(0) if self.script else self.default
        if isinstance(item, BaseException):
            raise item
        if callable(item):
            return item(payload)
        return item


@pytest.fixture()
def text_generator():
    return FakeGenerator()


@pytest.fixture()
def image_generator():
    return FakeGenerator(default=GeneratedContent(
        title="Visual Asset: ignored",
        body='<figure><img src="https://img.example/poster.png" alt="poster"/></figure>',
    ))


@pytest.fixture()
def client(db, text_generator, image_generator):
    """TestClient with the DB session and generators overridden."""

    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_text_generator] = lambda: text_generator
    app.dependency_overrides[get_image_generator] = lambda: image_generator
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# --- Actors ---------------------------------------------------------------

@pytest.fixture()
def advisor() -> Actor:
    return Actor(user_id="advisor-1", role=UserRole.ADVISOR, org_id=ORG)


@pytest.fixture()
def other_advisor() -> Actor:
    return Actor(user_id="advisor-2", role=UserRole.ADVISOR, org_id=ORG)


@pytest.fixture()
def compliance() -> Actor:
    return Actor(user_id="compliance-1", role=UserRole.COMPLIANCE, org_id=ORG)


@pytest.fixture()
def admin() -> Actor:
    return Actor(user_id="admin-1", role=UserRole.ADMIN, org_id=ORG)


@pytest.fixture()
def outsider() -> Actor:
    return Actor(user_id="compliance-9", role=UserRole.COMPLIANCE, org_id=OTHER_ORG)


def headers_for(actor: Actor) -> dict:
    return {"X-User-Id": actor.user_id, "X-User-Role": actor.role.value, "X-Org-Id": actor.org_id}


@pytest.fixture()
def headers():
    """headers(actor) -> identity headers for the API."""
    return headers_for


# --- Factories ------------------------------------------------------------

@pytest.fixture()
def make_request(db, advisor):
    """make_request(actor=advisor, topic=..., content_type=..., status=...) -> ContentRequest."""

    def _make(actor=None, topic="Estate planning for business owners", status=None, **fields):
        data = RequestCreate(topic_text=topic, **fields)
        request = RequestService(db).create_request(actor or advisor, data)
        if status is not None:
            request.status = status.value if isinstance(status, ContentStatus) else status
            db.commit()
        return request

    return _make


@pytest.fixture()
def add_version(db):
    """add_version(request_id, body=SAMPLE_BODY, title=..., generator=HUMAN) -> ContentVersion."""

    def _add(request_id, body=SAMPLE_BODY, title="Planning Ahead", generator=Generator.HUMAN, disclaimers=None):
        return VersionService(db).create_version(request_id, generator, title, body, disclaimers)

    return _add
