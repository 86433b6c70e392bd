"""Assemble report DataFrames from the trial snapshot.

Produces the tabular views the frontend and the JSON generator consume:
per-animal growth (evolution table), the weighing log and the feed log.
"""

from datetime import date

import numpy as np
import pandas as pd

from models.schemas import TrialSnapshot
from models.trial_config import TrialConfig
from services.trial.calendar import week_number
from services.trial.feed import net_forage, net_intake
from services.trial.growth import animal_growth, average_daily_gain

GROWTH_COLUMNS = [
    "animal_id", "tag", "group", "active", "initial_weight",
    "current_weight", "gain", "adg", "days",
]
WEIGHING_COLUMNS = ["id", "date", "tag", "group", "weight", "week", "adg", "notes"]
FEED_COLUMNS = [
    "id", "date", "group", "feed_offered", "feed_refused", "net_feed",
    "forage_offered", "forage_refused", "net_forage",
]


def build_growth_table(snapshot: TrialSnapshot, as_of: date) -> pd.DataFrame:
    """One row per animal (active or not), sorted by group then tag."""
    rows = [animal_growth(a, snapshot.weighings, as_of) for a in snapshot.animals]
    df = pd.DataFrame(rows, columns=GROWTH_COLUMNS)
    if df.empty:
        return df
    df["gain"] = df["gain"].round(2)
    # ADG is missing before the first elapsed day; keep it nullable
    df["adg"] = df["adg"].astype("Int64")
    return df.sort_values(["group", "tag"], kind="stable").reset_index(drop=True)


def build_weighing_log(snapshot: TrialSnapshot, config: TrialConfig) -> pd.DataFrame:
    """Weighings newest first, with group, trial week and ADG at that date.

    Weighings whose tag matches no animal keep group and ADG empty.
    """
    by_tag = {a.tag: a for a in snapshot.animals}
    rows = []
    for w in snapshot.weighings:
        animal = by_tag.get(w.tag)
        rows.append({
            "id": w.id,
            "date": w.date,
            "tag": w.tag,
            "group": animal.group if animal else None,
            "weight": w.weight,
            "week": w.week if w.week is not None else week_number(w.date, config),
            "adg": average_daily_gain(animal, w.weight, w.date) if animal else None,
            "notes": w.notes,
        })
    df = pd.DataFrame(rows, columns=WEIGHING_COLUMNS)
    if df.empty:
        return df
    df["week"] = df["week"].astype("Int64")
    df["adg"] = df["adg"].astype("Int64")
    return df.sort_values("date", ascending=False, kind="stable").reset_index(drop=True)


def build_feed_log(snapshot: TrialSnapshot, group: str | None = None) -> pd.DataFrame:
    records = [r for r in snapshot.feed_records if group is None or r.group == group]
    rows = [{
        "id": r.id,
        "date": r.date,
        "group": r.group,
        "feed_offered": r.feed_offered,
        "feed_refused": r.feed_refused,
        "net_feed": net_intake(r),
        "forage_offered": r.forage_offered,
        "forage_refused": r.forage_refused,
        "net_forage": net_forage(r),
    } for r in records]
    df = pd.DataFrame(rows, columns=FEED_COLUMNS)
    if df.empty:
        return df
    return df.sort_values("date", ascending=False, kind="stable").reset_index(drop=True)


def to_records(df: pd.DataFrame) -> list[dict]:
    """DataFrame -> JSON-ready list of dicts (NaN/NA -> None, dates -> ISO)."""
    if df.empty:
        return []
    out = df.astype(object).where(df.notna(), None)
    for col in out.columns:
        if col == "date":
            out[col] = out[col].map(lambda d: d.isoformat() if d is not None else None)
    records = out.to_dict(orient="records")
    for rec in records:
        for k, v in rec.items():
            if isinstance(v, np.integer):
                rec[k] = int(v)
            elif isinstance(v, np.floating):
                rec[k] = float(v)
            elif isinstance(v, np.bool_):
                rec[k] = bool(v)
    return records
