"""API contracts — Pydantic v2 models."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone

from pydantic import BaseModel, Field, field_validator

from habitkernel.kernel.classifier import DayState
from habitkernel.kernel.entries import Result
from habitkernel.kernel.repository import check_free_text


class DateRange(BaseModel):
    start: date
    end: date


class HabitOut(BaseModel):
    name: str
    heading: str | None = None
    frequency: str = ""
    target: int
    interval: int
    first_record: date | None = None
    tracking_only: bool = False


class HabitGraph(BaseModel):
    name: str
    heading: str | None = None
    symbols: list[str] = Field(default_factory=list)


class GraphEnvelope(BaseModel):
    """Graphs for every habit over one shared date range."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    schema_version: str = "v0"
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    time_range: DateRange
    count_back: int
    colorless: bool = False
    name_width: int = 0  # longest habit name, for aligning graph rows

    graphs: list[HabitGraph] = Field(default_factory=list)
    scores: list[float] = Field(default_factory=list)  # one per day, oldest first
    score: float = 100.0  # last day of the range
    at_risk: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class HabitStatsOut(BaseModel):
    name: str
    days_tracked: int = 0
    total: float = 0.0
    streaks: int = 0
    breaks: int = 0
    skips: int = 0


class StatsEnvelope(BaseModel):
    as_of: date
    stats: list[HabitStatsOut] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class ScoreOut(BaseModel):
    day: date
    score: float


class TodosOut(BaseModel):
    as_of: date
    days_back: int
    todos: dict[str, list[str]] = Field(default_factory=dict)  # ISO day -> habit names


class HabitStatus(BaseModel):
    name: str
    day: date
    state: DayState
    satisfied: bool
    skipified: bool
    warning: bool
    window: DateRange


class EntryIn(BaseModel):
    day: date
    habit: str = Field(..., min_length=1)
    result: Result
    comment: str = ""
    amount: float | None = None

    @field_validator("habit", "comment")
    @classmethod
    def _single_field(cls, value: str) -> str:
        return check_free_text(value)


class EntryOut(BaseModel):
    day: date
    habit: str
    result: Result
    comment: str = ""
    amount: float | None = None
