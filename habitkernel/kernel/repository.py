"""Storage boundary — Repository protocol, log format and storage errors.

The kernel never talks to files or databases directly. A repository
hands it validated outcomes; anything malformed is reported as a
warning string in `LoadedLog.warnings` and left out.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Protocol

from habitkernel.kernel.entries import HabitKey, Outcome, Result
from habitkernel.kernel.habits import HabitDefinition

HEADER_DATE = "Date"
HEADER_HABIT = "Habit"
HEADER_STATUS = "Status"
HEADER_COMMENT = "Comment"
HEADER_AMOUNT = "Amount"

Header = Mapping[str, int]


class StorageError(Exception):
    """Reading or writing persisted state failed."""

    def __init__(self, message: str, path: str | None = None):
        self.message = message
        self.path = path
        super().__init__(message)


class ConfigNotFoundError(StorageError):
    """The config directory or one of its files does not exist."""


@dataclass(frozen=True, slots=True)
class LogFormat:
    """Field layout and result codes shared by log parsers and writers."""

    separator: str = " : "
    columns: tuple[str, ...] = (
        HEADER_DATE,
        HEADER_HABIT,
        HEADER_STATUS,
        HEADER_COMMENT,
        HEADER_AMOUNT,
    )
    comment_marker: str = "#"
    heading_marker: str = "!"
    result_codes: frozenset[str] = frozenset(r.value for r in Result)

    @property
    def default_header(self) -> dict[str, int]:
        return {name: i for i, name in enumerate(self.columns)}

    def parse_header(self, line: str) -> dict[str, int] | None:
        """Column positions if `line` is a header line, else None."""
        words = line.split(self.separator)
        if not all(w in self.columns for w in words):
            return None
        return {w: i for i, w in enumerate(words)}

    def header_line(self, header: Header) -> str:
        ordered = sorted(header, key=lambda name: header[name])
        return self.separator.join(ordered)


DEFAULT_FORMAT = LogFormat()


@dataclass
class LoadedLog:
    entries: dict[HabitKey, Outcome]
    header: Header
    warnings: list[str] = field(default_factory=list)


class Repository(Protocol):
    async def load_entries(self) -> LoadedLog: ...

    async def load_habits(self) -> tuple[list[HabitDefinition], int]: ...

    async def write_entry(
        self,
        day: date,
        habit: str,
        result: Result,
        comment: str = "",
        amount: float | None = None,
        header: Header | None = None,
    ) -> None: ...


def format_amount(amount: float | None) -> str:
    if amount is None:
        return ""
    return f"{amount:.15g}"


def check_free_text(value: str, fmt: LogFormat = DEFAULT_FORMAT) -> str:
    """Reject text that would break a log line apart."""
    if fmt.separator in value:
        raise ValueError(f"must not contain {fmt.separator!r}")
    if "\n" in value or "\r" in value:
        raise ValueError("must be a single line")
    return value
