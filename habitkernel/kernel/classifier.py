"""Per-day classification and whole-history statistics."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum

from habitkernel.kernel.engine import iter_days, satisfied, skipified
from habitkernel.kernel.entries import Entries, HabitKey, Result
from habitkernel.kernel.habits import HabitDefinition


class DayState(str, Enum):
    success = "success"
    skip = "skip"
    satisfied = "satisfied"
    not_yet_tracked = "not_yet_tracked"
    broken = "break"


def classify_day(d: date, habit: HabitDefinition, entries: Entries) -> DayState:
    """Render state for one day.

    Priority: explicit success, explicit skip, skip covering the window,
    window satisfaction, before first record, break.
    """
    outcome = entries.get(HabitKey(d, habit.name))
    if outcome is not None:
        if outcome.result == Result.success:
            return DayState.success
        if outcome.result == Result.skip:
            return DayState.skip
    if skipified(d, habit, entries):
        return DayState.skip
    if satisfied(d, habit, entries):
        return DayState.satisfied
    if habit.first_record is not None and d < habit.first_record:
        return DayState.not_yet_tracked
    return DayState.broken


@dataclass
class HabitStats:
    days_tracked: int = 0
    total: float = 0.0
    streaks: int = 0
    breaks: int = 0
    skips: int = 0


def build_stats(
    habit: HabitDefinition,
    entries: Entries,
    today: date | None = None,
) -> HabitStats:
    """Aggregate day states and amounts over [first_record, today]."""
    stats = HabitStats()
    if habit.first_record is None:
        return stats

    today = today or date.today()
    if today < habit.first_record:
        return stats

    stats.days_tracked = (today - habit.first_record).days + 1
    for day in iter_days(habit.first_record, today):
        outcome = entries.get(HabitKey(day, habit.name))
        if outcome is not None:
            stats.total += outcome.amount

        state = classify_day(day, habit, entries)
        if state in (DayState.success, DayState.satisfied):
            stats.streaks += 1
        elif state is DayState.skip:
            stats.skips += 1
        elif state is DayState.broken:
            stats.breaks += 1
    return stats
