"""API router for derived trial reports and calendar lookups.

Every response is recomputed from the current snapshot on request.
"""

import math
from datetime import date

from fastapi import APIRouter, HTTPException, Query

from config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from generator.view_dataframes import (
    build_feed_log,
    build_growth_table,
    build_weighing_log,
    to_records,
)
from models.schemas import AnimalGrowth, ConversionRow, GroupSummary, TrialOverview
from services.trial_session import TrialSession, get_session
from services.trial.calendar import week_number
from services.trial.day_summary import month_calendar, summarize_day
from services.trial.performance import (
    conversion_table,
    summarize_all_groups,
    summarize_group,
    trial_overview,
)

router = APIRouter(prefix="/api", tags=["reports"])


def _session() -> TrialSession:
    try:
        return get_session()
    except RuntimeError:
        raise HTTPException(status_code=500, detail="Trial data not loaded")


def _as_of(value: date | None) -> date:
    return value or date.today()


@router.get("/reports/overview", response_model=TrialOverview)
def get_overview():
    session = _session()
    return trial_overview(session.snapshot.animals, session.snapshot.weighings, session.config)


@router.get("/reports/growth", response_model=list[AnimalGrowth])
def get_growth(as_of: date | None = Query(None, description="Reference date (default: today)")):
    """Evolution table: latest weight, gain, ADG and days on trial per animal."""
    df = build_growth_table(_session().snapshot, _as_of(as_of))
    return to_records(df)


@router.get("/reports/groups", response_model=list[GroupSummary])
def get_group_summaries(as_of: date | None = Query(None)):
    s = _session()
    snap = s.snapshot
    return summarize_all_groups(snap.animals, snap.weighings, snap.feed_records, _as_of(as_of), s.config)


@router.get("/reports/groups/{group}", response_model=GroupSummary)
def get_group_summary(group: str, as_of: date | None = Query(None)):
    s = _session()
    group = group.upper()
    if group not in s.config.groups:
        raise HTTPException(status_code=404, detail=f"Group '{group}' not found")
    snap = s.snapshot
    return summarize_group(group, snap.animals, snap.weighings, snap.feed_records, _as_of(as_of), s.config)


@router.get("/reports/conversion", response_model=list[ConversionRow])
def get_conversion():
    s = _session()
    snap = s.snapshot
    return conversion_table(snap.animals, snap.weighings, snap.feed_records, s.config)


@router.get("/reports/weighings")
def get_weighing_log(
    tag: str | None = Query(None),
    week: int | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
):
    s = _session()
    df = build_weighing_log(s.snapshot, s.config)
    if not df.empty:
        if tag:
            df = df[df["tag"] == tag.strip().upper()]
        if week is not None:
            df = df[df["week"].eq(week).fillna(False).astype(bool)]

    total = len(df)
    total_pages = max(1, math.ceil(total / page_size))
    start = (page - 1) * page_size
    return {
        "rows": to_records(df.iloc[start:start + page_size]),
        "total_rows": total,
        "page": page,
        "page_size": page_size,
        "total_pages": total_pages,
    }


@router.get("/reports/feed")
def get_feed_log(group: str | None = Query(None)):
    df = build_feed_log(_session().snapshot, group.upper() if group else None)
    return to_records(df)


# ── Calendar ────────────────────────────────────────────────────────────

@router.get("/calendar/week/{day}")
def get_week(day: date):
    return {"date": day.isoformat(), "week": week_number(day, _session().config)}


@router.get("/calendar/day/{day}")
def get_day(day: date):
    s = _session()
    return summarize_day(s.snapshot, day, s.config)


@router.get("/calendar/month/{year}/{month}")
def get_month(year: int, month: int):
    if not 1 <= month <= 12:
        raise HTTPException(status_code=400, detail="Month must be between 1 and 12")
    s = _session()
    return month_calendar(s.snapshot, year, month, s.config)
