"""Shared fixtures for the test suite."""

from __future__ import annotations

from datetime import date
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from habitkernel.db import get_repository
from habitkernel.kernel.entries import HabitKey, Outcome, Result
from habitkernel.kernel.habits import HabitDefinition, max_name_length
from habitkernel.kernel.repository import DEFAULT_FORMAT, LoadedLog
from habitkernel.main import app


# ---------------------------------------------------------------------------
# Fake storage (no files, no Postgres)
# ---------------------------------------------------------------------------

class FakeRepository:
    """In-memory Repository used by builder and endpoint tests."""

    def __init__(
        self,
        habits: list[HabitDefinition] | None = None,
        entries: dict[HabitKey, Outcome] | None = None,
        warnings: list[str] | None = None,
    ):
        self.habits = list(habits or [])
        self.entries = dict(entries or {})
        self.warnings = list(warnings or [])
        self.written: list[tuple] = []

    async def load_habits(self):
        return list(self.habits), max_name_length(self.habits)

    async def load_entries(self):
        return LoadedLog(
            entries=dict(self.entries),
            header=DEFAULT_FORMAT.default_header,
            warnings=list(self.warnings),
        )

    async def write_entry(self, day, habit, result, comment="", amount=None, header=None):
        self.written.append((day, habit, result, comment, amount, header))
        self.entries[HabitKey(day, habit)] = Outcome(
            result=Result(result),
            amount=amount or 0.0,
            comment=comment,
        )


class FakeSession:
    """Minimal stand-in for AsyncSession used in SQL repository tests."""

    def __init__(self, rows: list[dict[str, Any]] | None = None, error: Exception | None = None):
        self._rows = rows or []
        self._error = error
        self.executed: list[tuple[str, dict | None]] = []
        self.commits = 0

    async def execute(self, stmt, params=None):
        self.executed.append((str(stmt), params))
        if self._error is not None:
            raise self._error
        return FakeResult(self._rows)

    async def commit(self):
        self.commits += 1

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        pass


class FakeResult:
    def __init__(self, rows: list[dict[str, Any]]):
        self._rows = rows
        self._keys = list(rows[0].keys()) if rows else []

    def keys(self):
        return self._keys

    def fetchall(self):
        return [tuple(r[k] for k in self._keys) for r in self._rows]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def fake_repository():
    """Empty FakeRepository (set .habits / .entries in tests)."""
    return FakeRepository()


@pytest.fixture()
def override_repository(fake_repository):
    """Override the FastAPI dependency so no real storage is touched."""
    async def _override():
        yield fake_repository

    app.dependency_overrides[get_repository] = _override
    yield fake_repository
    app.dependency_overrides.clear()


@pytest.fixture()
async def client(override_repository):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def make_entries(habit: str, outcomes: dict[date, str | Outcome]) -> dict[HabitKey, Outcome]:
    """Build entries for one habit from {day: "y" | "n" | "s" | Outcome}."""
    out: dict[HabitKey, Outcome] = {}
    for day, value in outcomes.items():
        outcome = value if isinstance(value, Outcome) else Outcome(result=Result(value))
        out[HabitKey(day, habit)] = outcome
    return out


def make_habit(
    name: str = "Habit",
    target: int = 1,
    interval: int = 1,
    first_record: date | None = None,
    heading: str | None = None,
) -> HabitDefinition:
    return HabitDefinition(
        name=name,
        target=target,
        interval=interval,
        first_record=first_record,
        heading=heading,
        frequency=f"{target}/{interval}",
    )
