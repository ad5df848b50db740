"""Shared fixtures and mocks for all tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from actionbroker.broker import ConversationBroker
from actionbroker.config.settings import Settings
from actionbroker.executor.action_executor import ConfirmationExecutor
from actionbroker.models.records import ProgrammeRecord, Role, TaskRecord
from actionbroker.observability.telemetry import TelemetrySink
from actionbroker.store.database import Database
from actionbroker.store.pending import PendingActionStore
from actionbroker.store.records import RecordStore

MANAGER_ID = "mgr1"
MEMBER_ID = "mem1"


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def mock_settings(monkeypatch, tmp_path):
    monkeypatch.setenv("ACTIONBROKER_DB_PATH", str(tmp_path / "broker.db"))
    monkeypatch.setenv("ACTIONBROKER_PENDING_TTL_SECONDS", "300")
    monkeypatch.setenv("ACTIONBROKER_RETENTION_HOURS", "24")
    monkeypatch.setenv("ACTIONBROKER_LOG_LEVEL", "DEBUG")
    return Settings()


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc))


@pytest_asyncio.fixture
async def db():
    database = Database(db_path=":memory:")
    await database.initialize()
    yield database
    await database.close()


@pytest.fixture
def pending_store(db, clock):
    return PendingActionStore(db, clock=clock)


@pytest.fixture
def records(db):
    return RecordStore(db)


@pytest.fixture
def executor(records):
    return ConfirmationExecutor(records)


@pytest.fixture
def telemetry(records):
    return TelemetrySink(records)


@pytest.fixture
def broker(pending_store, executor, telemetry):
    return ConversationBroker(pending_store, executor, telemetry)


@pytest_asyncio.fixture
async def roles(records):
    await records.set_role(MANAGER_ID, Role.MANAGER)
    await records.set_role(MEMBER_ID, Role.MEMBER)
    return {"manager": MANAGER_ID, "member": MEMBER_ID}


@pytest_asyncio.fixture
async def programme(records):
    return await records.insert_programme(
        ProgrammeRecord(name="Youth Tech Training", status="draft", created_by=MANAGER_ID)
    )


@pytest_asyncio.fixture
async def task(records):
    return await records.insert_task(
        TaskRecord(title="Review Q1 budget", assignee_id=MEMBER_ID, created_by=MANAGER_ID)
    )
