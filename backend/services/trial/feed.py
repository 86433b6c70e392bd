"""Feed accounting over daily group records: net intake and range totals.

Refused <= offered is enforced at entry time. Records that break it are not
rejected here; they simply produce a negative net.
"""

from datetime import date

from models.schemas import FeedRecord


def net_intake(record: FeedRecord) -> float:
    """Concentrate feed consumed: offered minus refused (kg)."""
    return record.feed_offered - record.feed_refused


def net_forage(record: FeedRecord) -> float:
    """Forage consumed (kg). Kept apart from the feed figure."""
    return record.forage_offered - record.forage_refused


def aggregate_net(records: list[FeedRecord]) -> float:
    return sum((net_intake(r) for r in records), 0.0)


def aggregate_forage_net(records: list[FeedRecord]) -> float:
    return sum((net_forage(r) for r in records), 0.0)


def filter_records(
    records: list[FeedRecord],
    group: str | None = None,
    start: date | None = None,
    end: date | None = None,
) -> list[FeedRecord]:
    """Records of *group* dated within [start, end]; None bounds are open."""
    out = []
    for r in records:
        if group is not None and r.group != group:
            continue
        if start is not None and r.date < start:
            continue
        if end is not None and r.date > end:
            continue
        out.append(r)
    return out


def records_on(records: list[FeedRecord], day: date) -> list[FeedRecord]:
    return [r for r in records if r.date == day]
