"""Shared test fixtures."""

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel
from sqlmodel.pool import StaticPool

from gatekeeper.core.database import build_engine, get_session
from gatekeeper.engine.outcomes import Actor
from gatekeeper.main import app
from gatekeeper.models import Event, Team
from factories import make_event, make_team


@pytest.fixture(name="engine")
def engine_fixture():
    """Create an in-memory SQLite database for testing."""
    engine = build_engine("sqlite://", poolclass=StaticPool)
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="file_engine")
def file_engine_fixture(tmp_path):
    """Create a file-backed SQLite database shared by several connections.

    Used by tests where independent sessions race against each other.
    """
    engine = build_engine(f"sqlite:///{tmp_path / 'gatekeeper.db'}")
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture(name="session")
def session_fixture(engine):
    """Create a new database session for each test."""
    with Session(engine) as session:
        yield session


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Create a test client with the test database session."""

    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture(name="actor")
def actor_fixture() -> Actor:
    return Actor(id="staff-1", name="Gate Staff", role="staff")


@pytest.fixture(name="staff_headers")
def staff_headers_fixture() -> dict:
    return {"X-Actor-Id": "staff-1", "X-Actor-Name": "Gate Staff", "X-Actor-Role": "staff"}


@pytest.fixture(name="event")
def event_fixture(session: Session) -> Event:
    """An active event with open registration."""
    return make_event(session, "hack-night", venue="Main Hall")


@pytest.fixture(name="other_event")
def other_event_fixture(session: Session) -> Event:
    """A second, unrelated event."""
    return make_event(session, "code-fest", venue="Annex")


@pytest.fixture(name="team")
def team_fixture(session: Session, event: Event) -> Team:
    """A two-member team registered for ``event``."""
    return make_team(session, event, "Null Pointers", "lead-1")


@pytest.fixture(name="other_team")
def other_team_fixture(session: Session, other_event: Event) -> Team:
    """A two-member team registered for ``other_event``."""
    return make_team(session, other_event, "Segfaults", "lead-2")


@pytest.fixture(name="member_token")
def member_token_fixture(team: Team) -> str:
    return team.members[0].token


@pytest.fixture(name="seeded_file_db")
def seeded_file_db_fixture(file_engine):
    """Seed the file-backed database with one event and team.

    Returns (event_id, member_token).
    """
    with Session(file_engine) as session:
        event = make_event(session, "race-day")
        team = make_team(session, event, "Racers", "lead-race")
        return event.id, team.members[0].token
