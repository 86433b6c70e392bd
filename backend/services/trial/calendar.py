"""Trial calendar: week numbering and medication-course membership per civil date.

All comparisons are on calendar dates. Datetimes are reduced to their date
part first, so time-of-day and timezone offsets never shift a day boundary.
"""

from datetime import date, datetime

from models.schemas import Incident
from models.trial_config import TrialConfig


def as_civil_date(value: date | datetime | str) -> date:
    """Normalize a date, datetime or ISO string to a plain date (midnight)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def elapsed_days(start: date | datetime | str, end: date | datetime | str) -> int:
    """Whole days from *start* to *end*; negative when *end* is earlier."""
    return (as_civil_date(end) - as_civil_date(start)).days


def week_number(day: date | datetime | str, config: TrialConfig) -> int | None:
    """Trial week label for *day*.

    None before trial_start (arrival period), 0 for the baseline week,
    then 1, 2, ... for each 7-day block counted from week1_start.
    """
    d = as_civil_date(day)
    if d < config.trial_start:
        return None
    if d < config.week1_start:
        return 0
    return (d - config.week1_start).days // 7 + 1


def is_within_study(day: date | datetime | str, config: TrialConfig) -> bool:
    d = as_civil_date(day)
    return config.study_start <= d <= config.study_end


def is_within_treatment_interval(
    start: date | datetime | str,
    duration_days: int | None,
    day: date | datetime | str,
) -> bool:
    """True when *day* is a continuation day (days 2..N-1) of an N-day course.

    The start day is not covered here; callers match it by equality. Courses
    of one day or less never have continuation days.
    """
    if not duration_days or int(duration_days) <= 1:
        return False
    diff = elapsed_days(start, day)
    return 0 < diff < int(duration_days) - 1


def is_treatment_active(incident: Incident, day: date | datetime | str) -> bool:
    """Whether a treatment incident marks *day* as under medication."""
    if incident.kind != "treatment":
        return False
    d = as_civil_date(day)
    if incident.date == d:
        return True
    if incident.medication is None:
        return False
    return is_within_treatment_interval(incident.date, incident.medication.duration_days, d)


def treatment_day_index(incident: Incident, day: date | datetime | str) -> tuple[int, int]:
    """(day N, total days) label for an active course, e.g. (2, 5) -> "Day 2/5"."""
    total = incident.medication.duration_days if incident.medication else 1
    return elapsed_days(incident.date, day) + 1, total
