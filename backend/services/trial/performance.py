"""Group performance: per-group summary statistics and feed conversion index.

Folds growth and feed figures over the *active* animals of a group. Every call
recomputes from the snapshot it is given; nothing is cached between calls.

Known approximations, kept as-is:
  - mean_adg divides by the active count, so animals with no elapsed days
    (entered today or later) pull the mean toward zero.
  - the conversion index sets active animals' gain against *all* feed logged
    for the group, including feed eaten by animals that have since left.
"""

import logging
from datetime import date

from models.schemas import Animal, FeedRecord, Weighing
from models.trial_config import TrialConfig
from services.trial.calendar import elapsed_days
from services.trial.feed import aggregate_net, filter_records
from services.trial.growth import latest_weight

logger = logging.getLogger(__name__)


def active_animals(animals: list[Animal], group: str) -> list[Animal]:
    return [a for a in animals if a.group == group and a.active]


def summarize_group(
    group: str,
    animals: list[Animal],
    weighings: list[Weighing],
    feed_records: list[FeedRecord],
    as_of: date,
    config: TrialConfig | None = None,
) -> dict:
    """Summary statistics for the active animals of *group* as of *as_of*.

    Returns {"group", "label", "available": False} when the group has no active
    animals, otherwise means of initial/current weight, gain, ADG (g/day)
    and days on trial, plus the group's total net feed (kg).
    """
    label = config.group_label(group) if config else None
    members = active_animals(animals, group)
    if not members:
        return {"group": group, "label": label, "available": False}

    initial_total = 0.0
    current_total = 0.0
    adg_total = 0.0
    days_total = 0

    for animal in members:
        weight = latest_weight(animal, weighings)
        days = elapsed_days(animal.entry_date, as_of)
        initial_total += animal.initial_weight
        current_total += weight
        days_total += days
        if days > 0:
            adg_total += ((weight - animal.initial_weight) / days) * 1000

    n = len(members)
    mean_initial = initial_total / n
    mean_current = current_total / n

    return {
        "group": group,
        "label": label,
        "available": True,
        "count": n,
        "mean_initial_weight": mean_initial,
        "mean_current_weight": mean_current,
        "mean_gain": mean_current - mean_initial,
        "mean_adg": adg_total / n,
        "mean_days_on_trial": days_total / n,
        "total_net_feed": aggregate_net(filter_records(feed_records, group=group)),
    }


def conversion_index(total_net_feed: float, total_gain: float) -> float | None:
    """kg feed per kg gained; None when the group gained nothing."""
    if total_gain <= 0:
        return None
    return total_net_feed / total_gain


def group_total_gain(animals: list[Animal], weighings: list[Weighing], group: str) -> float:
    return sum(
        (latest_weight(a, weighings) - a.initial_weight for a in active_animals(animals, group)),
        0.0,
    )


def conversion_table(
    animals: list[Animal],
    weighings: list[Weighing],
    feed_records: list[FeedRecord],
    config: TrialConfig,
) -> list[dict]:
    """One conversion row per configured group."""
    rows = []
    for group in config.groups:
        total_feed = aggregate_net(filter_records(feed_records, group=group))
        total_gain = group_total_gain(animals, weighings, group)
        rows.append({
            "group": group,
            "label": config.group_label(group),
            "total_net_feed": total_feed,
            "total_gain": total_gain,
            "conversion_index": conversion_index(total_feed, total_gain),
        })
    return rows


def summarize_all_groups(
    animals: list[Animal],
    weighings: list[Weighing],
    feed_records: list[FeedRecord],
    as_of: date,
    config: TrialConfig,
) -> list[dict]:
    summaries = [
        summarize_group(g, animals, weighings, feed_records, as_of, config)
        for g in config.groups
    ]
    logger.info(
        "Summarized %d groups as of %s (%d without data)",
        len(summaries), as_of, sum(1 for s in summaries if not s["available"]),
    )
    return summaries


def trial_overview(animals: list[Animal], weighings: list[Weighing], config: TrialConfig) -> dict:
    return {
        "total_animals": len(animals),
        "active_animals": sum(1 for a in animals if a.active),
        "animals_by_group": {g: sum(1 for a in animals if a.group == g) for g in config.groups},
        "total_weighings": len(weighings),
    }
