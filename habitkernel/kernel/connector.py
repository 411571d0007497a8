"""SQL repository — async access to the habits and habit_log tables.

Tables:
  habits     (name, heading, frequency, position)
  habit_log  (id, day, habit, result, comment, amount)

habit_log is insert-only. When the same (day, habit) appears more than
once the row with the highest id wins, mirroring "later line wins" in
the flat-file log.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from habitkernel.kernel.entries import HabitKey, Outcome, Result
from habitkernel.kernel.habits import HabitDefinition, InvalidFrequencyError, max_name_length
from habitkernel.kernel.repository import (
    DEFAULT_FORMAT,
    Header,
    LoadedLog,
    StorageError,
    check_free_text,
)

logger = logging.getLogger(__name__)


def _as_date(value: Any) -> date | None:
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value)
        except ValueError:
            return None
    return None


async def _fetch_rows(session: AsyncSession, query: str) -> list[dict[str, Any]]:
    try:
        result = await session.execute(text(query))
    except SQLAlchemyError as exc:
        raise StorageError(f"Database query failed: {exc}") from exc
    columns = list(result.keys())
    return [dict(zip(columns, r)) for r in result.fetchall()]


def entries_from_rows(rows: list[dict[str, Any]]) -> LoadedLog:
    """Validate habit_log rows into outcomes; bad rows become warnings."""
    entries: dict[HabitKey, Outcome] = {}
    warnings: list[str] = []
    for row in rows:
        row_id = row.get("id")
        day = _as_date(row.get("day"))
        if day is None:
            warnings.append(f"Skipping row {row_id} with invalid day: {row.get('day')}")
            continue
        habit = (row.get("habit") or "").strip()
        if not habit:
            warnings.append(f"Skipping row {row_id} with empty habit name")
            continue
        code = (row.get("result") or "").strip()
        if code not in DEFAULT_FORMAT.result_codes:
            warnings.append(f"Skipping row {row_id} with invalid result '{code}' (expected y/n/s)")
            continue
        try:
            amount = float(row["amount"]) if row.get("amount") is not None else 0.0
        except (TypeError, ValueError):
            warnings.append(f"Invalid amount '{row.get('amount')}' in row {row_id}, using 0")
            amount = 0.0
        entries[HabitKey(day, habit)] = Outcome(
            result=Result(code),
            amount=amount,
            comment=row.get("comment") or "",
        )

    for w in warnings:
        logger.warning("habit_log: %s", w)
    return LoadedLog(entries=entries, header=DEFAULT_FORMAT.default_header, warnings=warnings)


class SqlRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def load_entries(self) -> LoadedLog:
        rows = await _fetch_rows(
            self.session,
            "SELECT id, day, habit, result, comment, amount FROM habit_log ORDER BY id",
        )
        return entries_from_rows(rows)

    async def load_habits(self) -> tuple[list[HabitDefinition], int]:
        rows = await _fetch_rows(
            self.session,
            "SELECT name, heading, frequency FROM habits ORDER BY position, name",
        )
        habits: list[HabitDefinition] = []
        for row in rows:
            name = (row.get("name") or "").strip()
            try:
                habits.append(HabitDefinition.from_frequency(name, row.get("frequency") or "", row.get("heading")))
            except InvalidFrequencyError as exc:
                logger.warning("habits: skipping '%s': %s", name, exc)
        return habits, max_name_length(habits)

    async def write_entry(
        self,
        day: date,
        habit: str,
        result: Result,
        comment: str = "",
        amount: float | None = None,
        header: Header | None = None,
    ) -> None:
        # header only orders flat-file columns; the table layout is fixed
        check_free_text(habit)
        check_free_text(comment)
        params = {
            "day": day,
            "habit": habit,
            "result": Result(result).value,
            "comment": comment,
            "amount": amount,
        }
        try:
            await self.session.execute(
                text(
                    "INSERT INTO habit_log (day, habit, result, comment, amount) "
                    "VALUES (:day, :habit, :result, :comment, :amount)"
                ),
                params,
            )
            await self.session.commit()
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to write log entry: {exc}") from exc
        logger.info("logged %s %s=%s", day.isoformat(), habit, params["result"])
