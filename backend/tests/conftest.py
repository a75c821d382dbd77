"""
Pytest configuration and shared fixtures.

The app reads its store credentials at import time, so dummy values are
placed in the environment before any `tracker` module is imported.
"""

import os

os.environ.setdefault("SUPABASE_URL", "https://example.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-key")
os.environ["CLEANUP_ENABLED"] = "false"

from datetime import datetime, timedelta, timezone
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient

from tracker.core.enums import FilterOperator
from tracker.core.errors import StoreError
from tracker.main import app
from tracker.services.job_service import JobService
from tracker.services.job_store import get_job_service


def _parse_ts(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class FakeStore:
    """In-memory stand-in for StoreClient that honours eq/lt/not-null filters."""

    def __init__(self) -> None:
        self.rows: List[dict] = []
        self.fail = False
        self.calls: List[tuple] = []

    def _check(self, op: str) -> None:
        self.calls.append((op,))
        if self.fail:
            raise StoreError(503, '{"message":"unavailable"}')

    @staticmethod
    def _matches(row: dict, filters) -> bool:
        for p in filters:
            value = row.get(p.column)
            if p.operator == FilterOperator.EQ:
                if value is None or str(value) != str(p.value):
                    return False
            elif p.operator == FilterOperator.LT:
                if value is None or not _parse_ts(value) < _parse_ts(p.value):
                    return False
            elif p.operator == FilterOperator.IS_NOT:
                if value is None:
                    return False
        return True

    def find(self, filters=(), order: Optional[str] = None) -> List[dict]:
        self._check("find")
        filters = list(filters)
        rows = [dict(r) for r in self.rows if self._matches(r, filters)]
        if order:
            column, direction = order.split(".")
            rows.sort(key=lambda r: _parse_ts(r[column]), reverse=direction == "desc")
        return rows

    def insert(self, row: dict) -> dict:
        self._check("insert")
        self.rows.append(dict(row))
        return dict(row)

    def patch(self, filters, partial_row: dict) -> None:
        self._check("patch")
        filters = list(filters)
        for r in self.rows:
            if self._matches(r, filters):
                r.update(partial_row)

    def delete(self, filters) -> None:
        self._check("delete")
        filters = list(filters)
        self.rows = [r for r in self.rows if not self._matches(r, filters)]

    def ids(self) -> List[str]:
        return [r["job_id"] for r in self.rows]


class StepClock:
    """Deterministic clock that advances one second per call."""

    def __init__(self, start: datetime) -> None:
        self.current = start

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + timedelta(seconds=1)
        return value


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def job_service(store) -> JobService:
    return JobService(store)


@pytest.fixture
def client(job_service):
    app.dependency_overrides[get_job_service] = lambda: job_service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(fixed_now) -> StepClock:
    return StepClock(fixed_now)
