"""Satisfaction engine — pure, stateless functions over an entry snapshot.

Every predicate looks backwards only: the window for day `d` ends at `d`
and entries dated after `d` are never read. Nothing here raises for
well-formed input.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import date, timedelta

from habitkernel.kernel.entries import Entries, HabitKey, Result
from habitkernel.kernel.habits import HabitDefinition


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every day in [start, end], oldest first."""
    day = start
    while day <= end:
        yield day
        day += timedelta(days=1)


def evaluation_window(d: date, habit: HabitDefinition) -> tuple[date, date]:
    """Backward window [start, d] clamped to the habit's first record.

    When `d` precedes the first record the returned start is after `d`,
    i.e. the window is empty.
    """
    start = d - timedelta(days=habit.interval - 1)
    if habit.first_record is not None and start < habit.first_record:
        start = habit.first_record
    return start, d


def count_results(
    start: date,
    end: date,
    habit_name: str,
    entries: Entries,
    result: Result,
    limit: int | None = None,
) -> int:
    """Count outcomes equal to `result` in [start, end]; stops early at `limit`."""
    count = 0
    for day in iter_days(start, end):
        outcome = entries.get(HabitKey(day, habit_name))
        if outcome is not None and outcome.result == result:
            count += 1
            if limit is not None and count >= limit:
                break
    return count


def satisfied(d: date, habit: HabitDefinition, entries: Entries) -> bool:
    """True when the window ending at `d` holds at least `target` successes."""
    if habit.target <= 0:
        return False
    start, end = evaluation_window(d, habit)
    if start > end:
        return False
    found = count_results(start, end, habit.name, entries, Result.success, limit=habit.target)
    return found >= habit.target


def skipified(d: date, habit: HabitDefinition, entries: Entries) -> bool:
    """True when a skip inside the window ending at `d` covers the day.

    Only multi-day cadences get this grace; daily and tracking-only habits
    never do.
    """
    if habit.interval <= 1 or habit.target <= 0:
        return False
    start, end = evaluation_window(d, habit)
    if start > end:
        return False
    return count_results(start, end, habit.name, entries, Result.skip, limit=1) > 0


def default_warning_days(interval: int) -> int:
    """Look-ahead used when the caller supplies no warning policy."""
    return interval // 7 + 1


def warning(
    d: date,
    habit: HabitDefinition,
    entries: Entries,
    warning_days: int | None = None,
) -> bool:
    """True when the habit will not be satisfied `warning_days` after `d`
    unless something new is logged.

    Only successes dated on or before `d` count. Without new successes the
    window can only lose successes as it slides, so a habit that is not
    satisfied at `d` is always flagged. The look-ahead is capped so the
    projected window still contains `d`; for a daily habit that means
    "nothing logged as done today".
    """
    if habit.target <= 0:
        return False
    if habit.first_record is not None and d < habit.first_record:
        return False
    if skipified(d, habit, entries):
        return False

    ahead = default_warning_days(habit.interval) if warning_days is None else max(warning_days, 0)
    ahead = min(ahead, habit.interval - 1)
    start, _ = evaluation_window(d + timedelta(days=ahead), habit)
    found = count_results(start, d, habit.name, entries, Result.success, limit=habit.target)
    return found < habit.target
