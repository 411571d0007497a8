"""Entry store types — outcomes keyed by (day, habit).

The store is a plain mapping. Nothing in the kernel relies on its
iteration order; window scans walk explicit date ranges instead.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from datetime import date
from enum import Enum
from types import MappingProxyType
from typing import NamedTuple

from habitkernel.kernel.habits import HabitDefinition


class Result(str, Enum):
    success = "y"
    fail = "n"
    skip = "s"


@dataclass(frozen=True, slots=True)
class Outcome:
    result: Result
    amount: float = 0.0
    comment: str = ""


class HabitKey(NamedTuple):
    day: date
    habit: str


Entries = Mapping[HabitKey, Outcome]


def snapshot(entries: Mapping[HabitKey, Outcome]) -> Entries:
    """Freeze a copy of `entries` so later writes cannot leak into an evaluation."""
    return MappingProxyType(dict(entries))


def first_records(
    entries: Entries,
    habits: Iterable[HabitDefinition],
) -> list[HabitDefinition]:
    """Return `habits` with `first_record` set to each habit's earliest entry.

    Single pass over the store. Habits without any entry get None.
    """
    earliest: dict[str, date] = {}
    for key in entries:
        seen = earliest.get(key.habit)
        if seen is None or key.day < seen:
            earliest[key.habit] = key.day
    return [replace(h, first_record=earliest.get(h.name)) for h in habits]
