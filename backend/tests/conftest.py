from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.database import get_session, import_models
from app.main import app
from app.models.division import Division
from app.models.league import GameType, League
from app.models.player import Player
from app.models.registration import Registration, RegistrationStatus

TEST_DATABASE_URL = "sqlite:///:memory:"

# ============================================================================
# Test Database Setup with StaticPool
# ============================================================================
# 1. sqlite:///:memory: with StaticPool so ALL sessions share the same DB
# 2. check_same_thread=False required for TestClient/threaded access
# 3. Models imported before create_all() (import_models)
# 4. App dependency overridden to use test_engine (see client_fixture)
# 5. Tables created per test and dropped afterwards
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def override_get_session():
    """Override session to use test engine"""
    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="session", scope="function")
def session_fixture():
    """Provide a test database session on a fresh schema"""
    import_models()
    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session

    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Provide a test client with overridden database session

    Override is set BEFORE TestClient() and stays in place for the entire
    duration, so the app never touches its own engine.
    """
    app.dependency_overrides[get_session] = override_get_session

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def make_league(session: Session):
    """Factory: league + one division + CONFIRMED players named as given."""

    def _make(
        player_names,
        game_type=GameType.SINGLES,
        start_date=date(2026, 1, 5),
        end_date=date(2026, 3, 30),
        **league_fields,
    ):
        league = League(
            name=f"{game_type.value.title()} League",
            game_type=game_type,
            start_date=start_date,
            end_date=end_date,
            **league_fields,
        )
        session.add(league)
        session.commit()
        session.refresh(league)

        division = Division(league_id=league.id, name="Open", sort_order=1)
        session.add(division)
        session.commit()
        session.refresh(division)

        players = []
        for name in player_names:
            player = Player(name=name)
            session.add(player)
            session.commit()
            session.refresh(player)
            session.add(
                Registration(
                    league_id=league.id,
                    division_id=division.id,
                    player_id=player.id,
                    status=RegistrationStatus.CONFIRMED,
                )
            )
            session.commit()
            players.append(player)

        return league, division, players

    return _make
