"""Shared pytest fixtures for the trial backend tests."""

import sys
from datetime import date
from pathlib import Path

import pytest

# Backend modules need path setup
sys.path.insert(0, str(Path(__file__).parent.parent))

from models.schemas import Animal, FeedRecord, Incident, Medication, Weighing
from models.trial_config import TrialConfig


@pytest.fixture
def config() -> TrialConfig:
    return TrialConfig()


@pytest.fixture
def make_animal():
    def _make(tag="A001", group="A", initial_weight=20.0, entry_date=date(2025, 12, 24), active=True, **kw):
        return Animal(
            id=kw.pop("id", f"id-{tag}"),
            tag=tag,
            group=group,
            initial_weight=initial_weight,
            entry_date=entry_date,
            active=active,
            **kw,
        )
    return _make


@pytest.fixture
def make_weighing():
    counter = iter(range(1, 10_000))

    def _make(tag, day, weight, **kw):
        return Weighing(id=kw.pop("id", f"w{next(counter)}"), tag=tag, date=day, weight=weight, **kw)
    return _make


@pytest.fixture
def make_feed():
    counter = iter(range(1, 10_000))

    def _make(group, day, offered, refused=0.0, **kw):
        return FeedRecord(
            id=kw.pop("id", f"f{next(counter)}"),
            group=group,
            date=day,
            feed_offered=offered,
            feed_refused=refused,
            **kw,
        )
    return _make


@pytest.fixture
def make_treatment():
    def _make(tag, start, duration, name="Oxytetracycline", **kw):
        return Incident(
            id=kw.pop("id", f"t-{tag}-{start.isoformat()}"),
            tag=tag,
            date=start,
            kind="treatment",
            medication=Medication(name=name, duration_days=duration),
            **kw,
        )
    return _make
