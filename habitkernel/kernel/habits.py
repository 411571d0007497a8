"""Habit definitions — static per-habit frequency configuration.

A habit is declared with a frequency text:

  "1"    → 1 success every 1 day (plain daily habit)
  "7"    → 1 success every 7 days
  "3/7"  → 3 successes in any trailing 7-day window
  "0"    → tracking only (never scored, never due)

`first_record` is not part of the declaration; it is filled in from the
entry store by `entries.first_records`.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date


class InvalidFrequencyError(ValueError):
    """Frequency text that is not `N` or `T/N` with sane integers."""


@dataclass(frozen=True, slots=True)
class HabitDefinition:
    name: str
    target: int = 1
    interval: int = 1
    first_record: date | None = None
    heading: str | None = None
    frequency: str = ""

    @property
    def tracking_only(self) -> bool:
        return self.target == 0

    @property
    def daily(self) -> bool:
        return self.target == 1 and self.interval == 1

    @classmethod
    def from_frequency(
        cls,
        name: str,
        frequency: str,
        heading: str | None = None,
    ) -> HabitDefinition:
        target, interval = parse_frequency(frequency)
        return cls(
            name=name,
            target=target,
            interval=interval,
            heading=heading,
            frequency=frequency.strip(),
        )


def _to_int(part: str, text: str) -> int:
    try:
        return int(part.strip())
    except ValueError:
        raise InvalidFrequencyError(f"Invalid frequency: {text!r}") from None


def parse_frequency(text: str) -> tuple[int, int]:
    """Parse frequency text into (target, interval)."""
    if text is None or not text.strip():
        raise InvalidFrequencyError("Empty frequency")

    if "/" in text:
        raw_target, _, raw_interval = text.partition("/")
        target = _to_int(raw_target, text)
        interval = _to_int(raw_interval, text)
    else:
        value = _to_int(text, text)
        # "0" is the tracking-only marker, anything else is "once every N days"
        if value == 0:
            target, interval = 0, 1
        else:
            target, interval = 1, value

    if target < 0 or interval < 1:
        raise InvalidFrequencyError(f"Invalid frequency: {text!r}")
    return target, interval


def max_name_length(habits: list[HabitDefinition]) -> int:
    return max((len(h.name) for h in habits), default=0)
