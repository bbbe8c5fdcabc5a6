"""
Pytest configuration and fixtures for LivePlan tests.
"""

import itertools
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from liveplan.database import get_planner
from liveplan.datekey import DateKey
from liveplan.main import app
from liveplan.models import Task
from liveplan.services.planner import Planner
from liveplan.store import MemoryStore

UTC = timezone.utc

# 2024-06-03 is a Monday
FIXED_NOW = datetime(2024, 6, 3, 9, 0, tzinfo=UTC)


def key(text: str) -> DateKey:
    return DateKey.parse(text)


_created = itertools.count()


def make_task(task_id: str, **fields) -> Task:
    """Task with a stable id; creation times increase with each call."""
    fields.setdefault("title", task_id)
    fields.setdefault("created_at", datetime(2024, 5, 1, tzinfo=UTC) + timedelta(minutes=next(_created)))
    return Task(id=task_id, **fields)


class FakeClock:
    """Settable clock handed to the planner."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta) -> None:
        self.now = self.now + timedelta(**delta)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def planner(store, clock):
    return Planner(store, tz=UTC, clock=clock, lookback_days=7)


@pytest_asyncio.fixture(scope="function")
async def client(planner):
    """Create an async test client backed by the in-memory planner."""
    app.dependency_overrides[get_planner] = lambda: planner

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
