"""Graph renderer — one symbol per day per habit.

Graphs are independent per habit, so `build_graphs_parallel` fans them
out over a thread pool and merges the results by habit name.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import date, timedelta

from habitkernel.kernel.classifier import DayState, classify_day
from habitkernel.kernel.engine import iter_days
from habitkernel.kernel.entries import Entries
from habitkernel.kernel.habits import HabitDefinition

logger = logging.getLogger(__name__)

_RESET = "\033[0m"

PLAIN_SYMBOLS: dict[DayState, str] = {
    DayState.success: "━",
    DayState.satisfied: "─",
    DayState.skip: "•",
    DayState.broken: "·",
    DayState.not_yet_tracked: " ",
}

_ANSI: dict[DayState, str] = {
    DayState.success: "\033[32m",  # green
    DayState.satisfied: "\033[2;32m",  # dim green
    DayState.skip: "\033[33m",  # yellow
    DayState.broken: "\033[31m",  # red
}

COLOR_SYMBOLS: dict[DayState, str] = {
    state: f"{_ANSI[state]}{glyph}{_RESET}" if state in _ANSI else glyph
    for state, glyph in PLAIN_SYMBOLS.items()
}


def symbol_for(state: DayState, colorless: bool = False) -> str:
    return (PLAIN_SYMBOLS if colorless else COLOR_SYMBOLS)[state]


def build_graph(
    habit: HabitDefinition,
    entries: Entries,
    count_back: int,
    colorless: bool = False,
    today: date | None = None,
) -> list[str]:
    """Symbols for [today - count_back, today]; always count_back + 1 long."""
    if count_back < 0:
        raise ValueError(f"count_back must be >= 0, got {count_back}")
    today = today or date.today()
    start = today - timedelta(days=count_back)
    return [symbol_for(classify_day(day, habit, entries), colorless) for day in iter_days(start, today)]


def build_graphs_parallel(
    habits: Sequence[HabitDefinition],
    entries: Entries,
    count_back: int,
    colorless: bool = False,
    today: date | None = None,
    max_workers: int | None = None,
) -> dict[str, list[str]]:
    """Build every habit's graph concurrently, keyed by habit name.

    `entries` must already be a frozen snapshot; workers only read it.
    """
    names = [h.name for h in habits]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise ValueError(f"Duplicate habit names: {', '.join(duplicates)}")
    if count_back < 0:
        raise ValueError(f"count_back must be >= 0, got {count_back}")
    if not habits:
        return {}

    # every worker renders the same calendar range
    today = today or date.today()
    workers = max_workers or min(32, len(habits))

    results: dict[str, list[str]] = {}
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="graph") as pool:
        futures = {
            pool.submit(build_graph, habit, entries, count_back, colorless, today): habit.name
            for habit in habits
        }
        for future in as_completed(futures):
            results[futures[future]] = future.result()

    logger.debug("built %s graphs over %s days with %s workers", len(results), count_back + 1, workers)
    return results
