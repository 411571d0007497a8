"""Daily completion score across scored habits."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from habitkernel.kernel.engine import iter_days, satisfied
from habitkernel.kernel.entries import Entries, HabitKey, Result
from habitkernel.kernel.habits import HabitDefinition


def _eligible(d: date, habit: HabitDefinition, entries: Entries) -> bool:
    if habit.target <= 0:
        return False
    if habit.first_record is not None and d < habit.first_record:
        return False
    outcome = entries.get(HabitKey(d, habit.name))
    # an explicit skip removes the habit from the day's denominator
    return outcome is None or outcome.result != Result.skip


def score(d: date, habits: Iterable[HabitDefinition], entries: Entries) -> float:
    """Percentage (0–100) of eligible habits satisfied on `d`.

    Nothing eligible counts as complete: 100.0.
    """
    eligible = 0
    done = 0
    for habit in habits:
        if not _eligible(d, habit, entries):
            continue
        eligible += 1
        if satisfied(d, habit, entries):
            done += 1

    if eligible == 0:
        return 100.0
    return 100.0 * done / eligible


def score_series(
    start: date,
    end: date,
    habits: Iterable[HabitDefinition],
    entries: Entries,
) -> list[float]:
    """One score per day in [start, end], oldest first."""
    habits = list(habits)
    return [score(day, habits, entries) for day in iter_days(start, end)]
