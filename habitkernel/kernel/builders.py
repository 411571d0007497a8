"""Report builders — load a snapshot from the repository and assemble envelopes.

Every builder takes one frozen snapshot up front, so concurrent writes to
the underlying log cannot change a report half-way through.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import date, timedelta

from habitkernel.kernel import classifier, engine, graph, score, todos
from habitkernel.kernel.entries import Entries, first_records, snapshot
from habitkernel.kernel.habits import HabitDefinition
from habitkernel.kernel.models import (
    DateRange,
    EntryIn,
    EntryOut,
    GraphEnvelope,
    HabitGraph,
    HabitOut,
    HabitStatsOut,
    HabitStatus,
    ScoreOut,
    StatsEnvelope,
    TodosOut,
)
from habitkernel.kernel.repository import Header, Repository


@dataclass
class KernelSnapshot:
    habits: list[HabitDefinition]
    entries: Entries
    header: Header
    max_name_length: int = 0
    warnings: list[str] = field(default_factory=list)

    def habit(self, name: str) -> HabitDefinition | None:
        return next((h for h in self.habits if h.name == name), None)


async def load_snapshot(repo: Repository) -> KernelSnapshot:
    habits, max_len = await repo.load_habits()
    loaded = await repo.load_entries()
    entries = snapshot(loaded.entries)
    return KernelSnapshot(
        habits=first_records(entries, habits),
        entries=entries,
        header=loaded.header,
        max_name_length=max_len,
        warnings=list(loaded.warnings),
    )


def _habit_out(h: HabitDefinition) -> HabitOut:
    return HabitOut(
        name=h.name,
        heading=h.heading,
        frequency=h.frequency,
        target=h.target,
        interval=h.interval,
        first_record=h.first_record,
        tracking_only=h.tracking_only,
    )


async def build_habit_list(repo: Repository) -> list[HabitOut]:
    snap = await load_snapshot(repo)
    return [_habit_out(h) for h in snap.habits]


async def build_graph_envelope(
    repo: Repository,
    today: date,
    count_back: int,
    colorless: bool = False,
    max_workers: int | None = None,
    warning_days: int | None = None,
) -> GraphEnvelope:
    snap = await load_snapshot(repo)
    start = today - timedelta(days=count_back)

    graphs = await asyncio.to_thread(
        graph.build_graphs_parallel,
        snap.habits,
        snap.entries,
        count_back,
        colorless,
        today,
        max_workers,
    )
    scores = score.score_series(start, today, snap.habits, snap.entries)
    at_risk = [h.name for h in snap.habits if engine.warning(today, h, snap.entries, warning_days)]

    return GraphEnvelope(
        time_range=DateRange(start=start, end=today),
        count_back=count_back,
        colorless=colorless,
        name_width=snap.max_name_length,
        graphs=[HabitGraph(name=h.name, heading=h.heading, symbols=graphs[h.name]) for h in snap.habits],
        scores=[round(s, 1) for s in scores],
        score=round(scores[-1], 1),
        at_risk=at_risk,
        warnings=snap.warnings,
    )


async def build_stats_envelope(repo: Repository, today: date) -> StatsEnvelope:
    snap = await load_snapshot(repo)
    stats: list[HabitStatsOut] = []
    for h in snap.habits:
        s = classifier.build_stats(h, snap.entries, today)
        stats.append(
            HabitStatsOut(
                name=h.name,
                days_tracked=s.days_tracked,
                total=s.total,
                streaks=s.streaks,
                breaks=s.breaks,
                skips=s.skips,
            )
        )
    return StatsEnvelope(as_of=today, stats=stats, warnings=snap.warnings)


async def build_score(repo: Repository, day: date) -> ScoreOut:
    snap = await load_snapshot(repo)
    return ScoreOut(day=day, score=round(score.score(day, snap.habits, snap.entries), 1))


async def build_todos(repo: Repository, today: date, days_back: int) -> TodosOut:
    snap = await load_snapshot(repo)
    pending = todos.todos(today, snap.habits, snap.entries, days_back)
    return TodosOut(
        as_of=today,
        days_back=days_back,
        todos={d.isoformat(): names for d, names in pending.items()},
    )


async def build_habit_status(
    repo: Repository,
    name: str,
    day: date,
    warning_days: int | None = None,
) -> HabitStatus | None:
    """None when the habit is unknown."""
    snap = await load_snapshot(repo)
    habit = snap.habit(name)
    if habit is None:
        return None
    start, end = engine.evaluation_window(day, habit)
    return HabitStatus(
        name=habit.name,
        day=day,
        state=classifier.classify_day(day, habit, snap.entries),
        satisfied=engine.satisfied(day, habit, snap.entries),
        skipified=engine.skipified(day, habit, snap.entries),
        warning=engine.warning(day, habit, snap.entries, warning_days),
        window=DateRange(start=start, end=end),
    )


async def record_entry(repo: Repository, entry: EntryIn) -> EntryOut | None:
    """Append an outcome for a known habit. None when the habit is unknown."""
    snap = await load_snapshot(repo)
    if snap.habit(entry.habit) is None:
        return None
    await repo.write_entry(
        entry.day,
        entry.habit,
        entry.result,
        entry.comment,
        entry.amount,
        snap.header,
    )
    return EntryOut(**entry.model_dump())
