"""Per-day summaries consumed by the calendar grid and its day detail view."""

import calendar as _calendar
from datetime import date

from models.schemas import TrialSnapshot
from models.trial_config import TrialConfig
from services.trial.calendar import (
    is_treatment_active,
    is_within_study,
    treatment_day_index,
    week_number,
)
from services.trial.feed import net_intake, records_on


def summarize_day(snapshot: TrialSnapshot, day: date, config: TrialConfig) -> dict:
    weighings = [w for w in snapshot.weighings if w.date == day]
    feed = records_on(snapshot.feed_records, day)
    starting = [i for i in snapshot.incidents if i.date == day]
    treatments = [i for i in snapshot.incidents if is_treatment_active(i, day)]

    active_treatments = []
    for t in treatments:
        day_n, total = treatment_day_index(t, day)
        active_treatments.append({
            "tag": t.tag,
            "medication": t.medication.name if t.medication else None,
            "day": day_n,
            "total_days": total,
        })

    feed_groups = {r.group for r in feed}
    return {
        "date": day.isoformat(),
        "week": week_number(day, config),
        "within_study": is_within_study(day, config),
        "weighings": [{"tag": w.tag, "weight": w.weight} for w in weighings],
        "feed": [{"group": r.group, "net_feed": net_intake(r)} for r in feed],
        # Treatments are listed under active_treatments
        "incidents": [
            {"tag": i.tag, "kind": i.kind, "description": i.description}
            for i in starting if i.kind != "treatment"
        ],
        "active_treatments": active_treatments,
        "indicators": {
            "weighing": bool(weighings),
            "feed_a": "A" in feed_groups,
            "feed_b": "B" in feed_groups,
            "symptom": any(i.kind == "symptom" for i in starting),
            "treatment": bool(treatments),
            "exit": any(i.kind in ("withdrawal", "death") for i in starting),
        },
    }


def month_calendar(snapshot: TrialSnapshot, year: int, month: int, config: TrialConfig) -> list[dict]:
    _, n_days = _calendar.monthrange(year, month)
    return [summarize_day(snapshot, date(year, month, d), config) for d in range(1, n_days + 1)]
