"""Kernel HTTP router — habits, graphs, stats, score, todos, entries."""

from __future__ import annotations

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, HTTPException, Query

from habitkernel.auth import verify_api_key
from habitkernel.config import settings
from habitkernel.db import get_repository
from habitkernel.kernel import builders
from habitkernel.kernel.models import (
    EntryIn,
    EntryOut,
    GraphEnvelope,
    HabitOut,
    HabitStatus,
    ScoreOut,
    StatsEnvelope,
    TodosOut,
)
from habitkernel.kernel.repository import Repository

router = APIRouter(prefix="/kernel", tags=["kernel"])


def _today() -> date:
    tz = timezone.utc if settings.default_tz.upper() == "UTC" else ZoneInfo(settings.default_tz)
    return datetime.now(tz).date()


def _parse_date(value: str | None, name: str) -> date:
    if value is None:
        return _today()
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise HTTPException(status_code=422, detail=f"Invalid date for '{name}': {value}")


@router.get("/habits", response_model=list[HabitOut])
async def list_habits(
    repo: Repository = Depends(get_repository),
    _: str = Depends(verify_api_key),
) -> list[HabitOut]:
    return await builders.build_habit_list(repo)


@router.get("/graphs", response_model=GraphEnvelope)
async def get_graphs(
    repo: Repository = Depends(get_repository),
    _: str = Depends(verify_api_key),
    count_back: int | None = Query(default=None, ge=0, le=3650, description="Days before today to render"),
    colorless: bool | None = Query(default=None, description="Plain glyphs without ANSI colour"),
    on: str | None = Query(default=None, alias="date", description="Last day of the graph (YYYY-MM-DD)"),
) -> GraphEnvelope:
    return await builders.build_graph_envelope(
        repo,
        today=_parse_date(on, "date"),
        count_back=settings.count_back if count_back is None else count_back,
        colorless=settings.colorless if colorless is None else colorless,
        max_workers=settings.graph_workers,
        warning_days=settings.warning_days,
    )


@router.get("/stats", response_model=StatsEnvelope)
async def get_stats(
    repo: Repository = Depends(get_repository),
    _: str = Depends(verify_api_key),
    on: str | None = Query(default=None, alias="date", description="Count up to this day (YYYY-MM-DD)"),
) -> StatsEnvelope:
    return await builders.build_stats_envelope(repo, _parse_date(on, "date"))


@router.get("/score", response_model=ScoreOut)
async def get_score(
    repo: Repository = Depends(get_repository),
    _: str = Depends(verify_api_key),
    on: str | None = Query(default=None, alias="date", description="Day to score (YYYY-MM-DD)"),
) -> ScoreOut:
    return await builders.build_score(repo, _parse_date(on, "date"))


@router.get("/todos", response_model=TodosOut)
async def get_todos(
    repo: Repository = Depends(get_repository),
    _: str = Depends(verify_api_key),
    days_back: int | None = Query(default=None, ge=0, le=365),
    on: str | None = Query(default=None, alias="date", description="Latest day to check (YYYY-MM-DD)"),
) -> TodosOut:
    return await builders.build_todos(
        repo,
        _parse_date(on, "date"),
        settings.todo_days_back if days_back is None else days_back,
    )


@router.get("/habits/{name}/status", response_model=HabitStatus)
async def get_habit_status(
    name: str,
    repo: Repository = Depends(get_repository),
    _: str = Depends(verify_api_key),
    on: str | None = Query(default=None, alias="date", description="Day to evaluate (YYYY-MM-DD)"),
) -> HabitStatus:
    status = await builders.build_habit_status(repo, name, _parse_date(on, "date"), settings.warning_days)
    if status is None:
        raise HTTPException(status_code=404, detail=f"Unknown habit: {name}")
    return status


@router.post("/entries", response_model=EntryOut, status_code=201)
async def post_entry(
    entry: EntryIn,
    repo: Repository = Depends(get_repository),
    _: str = Depends(verify_api_key),
) -> EntryOut:
    written = await builders.record_entry(repo, entry)
    if written is None:
        raise HTTPException(status_code=404, detail=f"Unknown habit: {entry.habit}")
    return written
