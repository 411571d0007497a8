"""Outstanding habits — tracked habits with nothing logged for a day."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, timedelta

from habitkernel.kernel.engine import iter_days
from habitkernel.kernel.entries import Entries, HabitKey
from habitkernel.kernel.habits import HabitDefinition


def todos(
    today: date,
    habits: Sequence[HabitDefinition],
    entries: Entries,
    days_back: int = 0,
) -> dict[date, list[str]]:
    """Map each day in [today - days_back, today] to its unlogged habit names.

    Habits whose first record is later than the day are not due yet.
    Days with nothing outstanding are left out.
    """
    if days_back < 0:
        raise ValueError(f"days_back must be >= 0, got {days_back}")

    out: dict[date, list[str]] = {}
    for day in iter_days(today - timedelta(days=days_back), today):
        pending = [
            h.name
            for h in habits
            if (h.first_record is None or day >= h.first_record)
            and HabitKey(day, h.name) not in entries
        ]
        if pending:
            out[day] = pending
    return out
