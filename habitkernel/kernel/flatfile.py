"""Flat-file repository — `habits` and `log` text files in a config dir.

log:     one outcome per line, fields joined by " : ", optional header
         line first, e.g. `Date : Habit : Status : Comment : Amount`.
habits:  `Name: frequency` per line, `! Heading` starts a section,
         `#` lines are comments.

The log is append-only: writes add one line and never touch earlier ones.
Bad lines are skipped (or repaired) with a warning, never fatal.
"""

from __future__ import annotations

import asyncio
import errno
import logging
from collections.abc import Iterable
from datetime import date
from pathlib import Path

from habitkernel.kernel.entries import HabitKey, Outcome, Result
from habitkernel.kernel.habits import HabitDefinition, InvalidFrequencyError, max_name_length
from habitkernel.kernel.repository import (
    DEFAULT_FORMAT,
    HEADER_AMOUNT,
    HEADER_COMMENT,
    HEADER_DATE,
    HEADER_HABIT,
    HEADER_STATUS,
    ConfigNotFoundError,
    Header,
    LoadedLog,
    LogFormat,
    StorageError,
    check_free_text,
    format_amount,
)

logger = logging.getLogger(__name__)

LOG_FILE = "log"
HABITS_FILE = "habits"

EXAMPLE_HABITS = """\
# Habits are "Name: frequency".
#   1    every day
#   7    once every 7 days
#   3/7  three times in any 7 days
#   0    tracking only, never scored
# Lines starting with ! open a heading.

! Dailies
Meditate: 1
Read: 1

! Weeklies
Gym: 3/7
Call family: 7

! Tracking
Coffee: 0
"""


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _field(fields: list[str], header: Header, name: str) -> str | None:
    i = header.get(name)
    if i is None or i >= len(fields):
        return None
    return fields[i]


def _parse_log_line(
    line: str,
    lineno: int,
    header: Header,
    fmt: LogFormat,
    entries: dict[HabitKey, Outcome],
    warnings: list[str],
) -> None:
    if not line.strip() or line.startswith(fmt.comment_marker):
        return

    fields = line.split(fmt.separator)
    if len(fields) != len(header):
        warnings.append(f"expected ({len(header)}) fields, found ({len(fields)}) at line {lineno}")

    raw_date = _field(fields, header, HEADER_DATE)
    try:
        day = date.fromisoformat((raw_date or "").strip())
    except ValueError:
        warnings.append(f"Skipping log entry with invalid date at line {lineno}: {raw_date}")
        return

    habit = (_field(fields, header, HEADER_HABIT) or "").strip()
    if not habit:
        warnings.append(f"Skipping log entry with empty habit name at line {lineno}")
        return

    status = (_field(fields, header, HEADER_STATUS) or "").strip()
    if status not in fmt.result_codes:
        warnings.append(
            f"Skipping log entry with invalid result '{status}' at line {lineno} (expected y/n/s)"
        )
        return

    amount = 0.0
    raw_amount = (_field(fields, header, HEADER_AMOUNT) or "").strip()
    if raw_amount:
        try:
            amount = float(raw_amount)
        except ValueError:
            warnings.append(f"Invalid amount '{raw_amount}' at line {lineno}, using 0")

    comment = _field(fields, header, HEADER_COMMENT) or ""
    entries[HabitKey(day, habit)] = Outcome(result=Result(status), amount=amount, comment=comment)


def parse_log(lines: Iterable[str], fmt: LogFormat = DEFAULT_FORMAT) -> LoadedLog:
    """Parse log lines. A first line that is not a header is read as data."""
    lines = list(lines)
    header: Header = fmt.default_header
    first_data = 0
    if lines:
        parsed = fmt.parse_header(lines[0].rstrip("\n"))
        if parsed is not None:
            header = parsed
            first_data = 1

    entries: dict[HabitKey, Outcome] = {}
    warnings: list[str] = []
    for lineno, line in enumerate(lines[first_data:], start=first_data + 1):
        _parse_log_line(line.rstrip("\n"), lineno, header, fmt, entries, warnings)

    for w in warnings:
        logger.warning("log: %s", w)
    return LoadedLog(entries=entries, header=header, warnings=warnings)


def parse_habits(
    lines: Iterable[str],
    fmt: LogFormat = DEFAULT_FORMAT,
) -> tuple[list[HabitDefinition], list[str]]:
    """Parse habit declarations in file order, with warnings for skipped lines."""
    habits: list[HabitDefinition] = []
    warnings: list[str] = []
    seen: set[str] = set()
    heading: str | None = None

    for lineno, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line or line.startswith(fmt.comment_marker):
            continue
        if line.startswith(fmt.heading_marker):
            heading = line[len(fmt.heading_marker):].strip() or None
            continue

        name, sep, frequency = line.rpartition(":")
        name = name.strip()
        if not sep or not name:
            warnings.append(f"Skipping habit without 'name: frequency' at line {lineno}: {line}")
            continue
        if name in seen:
            warnings.append(f"Skipping duplicate habit '{name}' at line {lineno}")
            continue
        try:
            habit = HabitDefinition.from_frequency(name, frequency, heading)
        except InvalidFrequencyError as exc:
            warnings.append(f"Skipping habit '{name}' at line {lineno}: {exc}")
            continue
        seen.add(name)
        habits.append(habit)

    for w in warnings:
        logger.warning("habits: %s", w)
    return habits, warnings


def format_entry(
    day: date,
    habit: str,
    result: Result,
    comment: str = "",
    amount: float | None = None,
    header: Header | None = None,
    fmt: LogFormat = DEFAULT_FORMAT,
) -> str:
    """One log line (with trailing newline), fields ordered by `header`."""
    header = header or fmt.default_header
    check_free_text(habit, fmt)
    check_free_text(comment, fmt)
    values = {
        HEADER_DATE: day.isoformat(),
        HEADER_HABIT: habit,
        HEADER_STATUS: Result(result).value,
        HEADER_COMMENT: comment,
        HEADER_AMOUNT: format_amount(amount),
    }
    fields = [""] * len(header)
    for name, i in header.items():
        fields[i] = values.get(name, "")
    return fmt.separator.join(fields) + "\n"


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class FlatFileRepository:
    def __init__(self, config_dir: str | Path, fmt: LogFormat = DEFAULT_FORMAT):
        self.config_dir = Path(config_dir).expanduser()
        self.fmt = fmt

    @property
    def log_path(self) -> Path:
        return self.config_dir / LOG_FILE

    @property
    def habits_path(self) -> Path:
        return self.config_dir / HABITS_FILE

    # -- async Repository API ------------------------------------------------

    async def load_entries(self) -> LoadedLog:
        return await asyncio.to_thread(self.read_log)

    async def load_habits(self) -> tuple[list[HabitDefinition], int]:
        habits, _ = await asyncio.to_thread(self.read_habits)
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
        await asyncio.to_thread(self.append_entry, day, habit, result, comment, amount, header)

    # -- sync file access ----------------------------------------------------

    def _missing(self, path: Path, what: str) -> ConfigNotFoundError:
        icloud = self.config_dir / f".{path.name}.icloud"
        if icloud.exists():
            return ConfigNotFoundError(
                f"Your {what} file is currently syncing with iCloud (found {icloud.name}). "
                "Wait for the sync to finish or keep the config directory out of iCloud.",
                str(path),
            )
        if self.config_dir.exists():
            return ConfigNotFoundError(f"{what.capitalize()} file not found at {path}", str(path))
        return ConfigNotFoundError(f"Configuration directory not found at {self.config_dir}", str(path))

    def _read_lines(self, path: Path, what: str) -> list[str]:
        try:
            return path.read_text(encoding="utf-8").splitlines()
        except FileNotFoundError:
            raise self._missing(path, what) from None
        except PermissionError as exc:
            raise StorageError(f"Permission denied accessing {what} file at {path}", str(path)) from exc
        except OSError as exc:
            raise StorageError(f"Error opening {what} file at {path}: {exc}", str(path)) from exc

    def read_log(self) -> LoadedLog:
        loaded = parse_log(self._read_lines(self.log_path, "log"), self.fmt)
        logger.info("loaded %s entries from %s (%s warnings)", len(loaded.entries), self.log_path, len(loaded.warnings))
        return loaded

    def read_habits(self) -> tuple[list[HabitDefinition], list[str]]:
        return parse_habits(self._read_lines(self.habits_path, "habits"), self.fmt)

    def append_entry(
        self,
        day: date,
        habit: str,
        result: Result,
        comment: str = "",
        amount: float | None = None,
        header: Header | None = None,
    ) -> None:
        line = format_entry(day, habit, result, comment, amount, header, self.fmt)
        path = self.log_path
        try:
            with path.open("a", encoding="utf-8") as fh:
                fh.write(line)
        except FileNotFoundError as exc:
            raise StorageError(f"Configuration directory does not exist: {self.config_dir}", str(path)) from exc
        except PermissionError as exc:
            raise StorageError(
                f"Permission denied writing to log file: {path} (check file permissions)", str(path)
            ) from exc
        except OSError as exc:
            if exc.errno == errno.ENOSPC:
                raise StorageError("Failed to write log entry: disk full", str(path)) from exc
            raise StorageError(f"Failed to write log entry to {path}: {exc}", str(path)) from exc
        logger.info("logged %s %s=%s", day.isoformat(), habit, Result(result).value)

    def initialize(self) -> bool:
        """Create the config dir, an example habits file and an empty log.

        Existing files are left alone. Returns True if anything was created.
        """
        created = False
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            if not self.habits_path.exists():
                self.habits_path.write_text(EXAMPLE_HABITS, encoding="utf-8")
                created = True
            if not self.log_path.exists():
                self.log_path.write_text(
                    self.fmt.header_line(self.fmt.default_header) + "\n", encoding="utf-8"
                )
                created = True
        except OSError as exc:
            raise StorageError(f"Cannot initialize config at {self.config_dir}: {exc}", str(self.config_dir)) from exc
        if created:
            logger.info("initialized config at %s", self.config_dir)
        return created
