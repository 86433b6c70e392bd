"""Per-animal growth figures: current weight, gain and average daily gain (ADG).

Two weight lookups exist and callers must pick the right one:
  - weight_before(): last weighing strictly before a date. Used to check a
    new entry against the previous weight.
  - latest_weight(): last weighing overall. Used for reporting.
Both fall back to the animal's initial weight when nothing was weighed.
"""

import math
from datetime import date

from models.schemas import Animal, Weighing
from services.trial.calendar import as_civil_date, elapsed_days

# Advisory threshold: a new weight below 90% of the previous one is flagged
DEFAULT_LOSS_RATIO = 0.9


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _weighings_for(animal: Animal, weighings: list[Weighing]) -> list[Weighing]:
    """The animal's weighings, newest first. Same-day entries keep insertion order."""
    own = [w for w in weighings if w.tag == animal.tag]
    return sorted(own, key=lambda w: w.date, reverse=True)


def latest_weight(animal: Animal, weighings: list[Weighing]) -> float:
    own = _weighings_for(animal, weighings)
    return own[0].weight if own else animal.initial_weight


def weight_before(animal: Animal, weighings: list[Weighing], day: date) -> float:
    d = as_civil_date(day)
    earlier = [w for w in _weighings_for(animal, weighings) if w.date < d]
    return earlier[0].weight if earlier else animal.initial_weight


def current_weight(animal: Animal, weighings: list[Weighing], as_of: date | None = None) -> float:
    """Reporting weight when *as_of* is None, otherwise the weight before *as_of*."""
    if as_of is None:
        return latest_weight(animal, weighings)
    return weight_before(animal, weighings, as_of)


def average_daily_gain(animal: Animal, current: float, as_of: date) -> int | None:
    """ADG in g/day since trial entry, rounded to the nearest gram.

    None when *as_of* is on or before the entry date.
    """
    days = elapsed_days(animal.entry_date, as_of)
    if days <= 0:
        return None
    return _round_half_up(((current - animal.initial_weight) / days) * 1000)


def flag_abnormal_loss(previous: float | None, new: float, ratio: float = DEFAULT_LOSS_RATIO) -> bool:
    """True when *new* dropped more than (1 - ratio) below *previous*. Advisory only."""
    if not previous:
        return False
    return new < previous * ratio


def loss_percent(previous: float, new: float) -> float | None:
    if not previous:
        return None
    return round((1 - new / previous) * 100, 1)


def animal_growth(animal: Animal, weighings: list[Weighing], as_of: date) -> dict:
    """Row for the evolution table: latest weight, gain, ADG and days on trial."""
    weight = latest_weight(animal, weighings)
    return {
        "animal_id": animal.id,
        "tag": animal.tag,
        "group": animal.group,
        "active": animal.active,
        "initial_weight": animal.initial_weight,
        "current_weight": weight,
        "gain": weight - animal.initial_weight,
        "adg": average_daily_gain(animal, weight, as_of),
        "days": elapsed_days(animal.entry_date, as_of),
    }
