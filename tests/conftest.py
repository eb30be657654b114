"""Shared fixtures: an in-memory database, a controllable clock and
explicitly wired engine services."""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from peachy.core.config import Settings
from peachy.core.events import EventHub
from peachy.core.locks import LockRegistry
from peachy.db.base import Base
from peachy.db.session import make_engine, make_session_factory
from peachy.main import create_app
from peachy.services.activity_service import ActivityAwards
from peachy.services.points_service import PointsLedger
from peachy.services.reward_service import RewardCatalog
from peachy.services.security import create_access_token
from peachy.services.task_service import TaskLifecycle
from peachy.services.tree_catalog import TreeType
from peachy.services.tree_service import TreeProgression


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


# Small catalog so trees grow in a handful of points
SPRIG = TreeType("sprig", "Sprig", "🌱", 5, 1)
FERN = TreeType("fern", "Fern", "🌿", 10, 2)
MOSS = TreeType("moss", "Moss", "🍀", 20, 3)
SMALL_CATALOG = (SPRIG, FERN, MOSS)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def engine():
    eng = make_engine("sqlite://")
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def events() -> EventHub:
    return EventHub()


@pytest.fixture
def seen_events(events) -> list:
    seen: list = []
    events.subscribe(seen.append)
    return seen


@pytest.fixture
def ledger(db, events, clock) -> PointsLedger:
    return PointsLedger(db, locks=LockRegistry(), events=events, clock=clock)


@pytest.fixture
def activities(ledger) -> ActivityAwards:
    return ActivityAwards(ledger, Settings())


@pytest.fixture
def tasks(db, ledger, clock) -> TaskLifecycle:
    return TaskLifecycle(db, ledger, clock=clock)


@pytest.fixture
def rewards(db, ledger, clock) -> RewardCatalog:
    return RewardCatalog(db, ledger, clock=clock, window_days=7)


@pytest.fixture
def trees(db, ledger, clock) -> TreeProgression:
    """Progression over the default oak..bamboo catalog."""
    return TreeProgression(db, ledger, clock=clock)


@pytest.fixture
def small_trees(db, ledger, clock) -> TreeProgression:
    return TreeProgression(db, ledger, catalog=SMALL_CATALOG, clock=clock)


@pytest.fixture
def client(session_factory, events, clock) -> TestClient:
    app = create_app(session_factory, events=events, tree_catalog=SMALL_CATALOG, clock=clock)
    return TestClient(app)


def auth(user_id: str, *, admin: bool = False) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id, is_admin=admin)}"}
