"""Tests for per-animal weight lookups, average daily gain and loss flagging."""

from datetime import date, timedelta

import pytest

from services.trial.growth import (
    animal_growth,
    average_daily_gain,
    current_weight,
    flag_abnormal_loss,
    latest_weight,
    loss_percent,
    weight_before,
)


@pytest.fixture
def lamb(make_animal):
    return make_animal(tag="A001", initial_weight=20.0, entry_date=date(2025, 12, 24))


@pytest.fixture
def history(make_weighing):
    # Inserted out of date order on purpose
    return [
        make_weighing("A001", date(2026, 1, 7), 24.5),
        make_weighing("A001", date(2025, 12, 31), 22.0),
        make_weighing("B009", date(2026, 1, 20), 35.0),
        make_weighing("A001", date(2026, 1, 14), 23.0),
    ]


# ──────────────────────────────────────────────────────────────
# Weight lookups
# ──────────────────────────────────────────────────────────────

class TestWeightLookups:
    def test_latest_weight_ignores_other_animals(self, lamb, history):
        assert latest_weight(lamb, history) == 23.0

    def test_weight_before_is_strict(self, lamb, history):
        assert weight_before(lamb, history, date(2026, 1, 14)) == 24.5
        assert weight_before(lamb, history, date(2026, 1, 15)) == 23.0

    def test_weight_before_falls_back_to_initial(self, lamb, history):
        assert weight_before(lamb, history, date(2025, 12, 31)) == 20.0

    def test_no_weighings_falls_back_to_initial(self, lamb):
        assert latest_weight(lamb, []) == 20.0
        assert weight_before(lamb, [], date(2026, 1, 1)) == 20.0

    def test_current_weight_dispatch(self, lamb, history):
        assert current_weight(lamb, history) == 23.0
        assert current_weight(lamb, history, date(2026, 1, 10)) == 24.5

    def test_same_day_keeps_first_entry(self, lamb, make_weighing):
        ws = [
            make_weighing("A001", date(2026, 1, 7), 25.0),
            make_weighing("A001", date(2026, 1, 7), 26.0),
        ]
        assert latest_weight(lamb, ws) == 25.0


# ──────────────────────────────────────────────────────────────
# Average daily gain
# ──────────────────────────────────────────────────────────────

class TestAverageDailyGain:
    def test_hundred_days_twenty_kg(self, lamb):
        as_of = lamb.entry_date + timedelta(days=100)
        assert average_daily_gain(lamb, 40.0, as_of) == 200

    @pytest.mark.parametrize("offset", [0, -1, -30])
    def test_none_on_or_before_entry(self, lamb, offset):
        assert average_daily_gain(lamb, 25.0, lamb.entry_date + timedelta(days=offset)) is None

    def test_weight_loss_is_negative(self, lamb):
        assert average_daily_gain(lamb, 18.0, lamb.entry_date + timedelta(days=10)) == -200

    def test_rounds_to_nearest_gram(self, lamb):
        # 3 kg over 7 days = 428.57 g/day
        assert average_daily_gain(lamb, 23.0, lamb.entry_date + timedelta(days=7)) == 429

    def test_returns_int(self, lamb):
        assert isinstance(average_daily_gain(lamb, 21.0, lamb.entry_date + timedelta(days=3)), int)


# ──────────────────────────────────────────────────────────────
# Abnormal loss
# ──────────────────────────────────────────────────────────────

class TestAbnormalLoss:
    @pytest.mark.parametrize("new,expected", [
        (26.9, True),
        (27.0, False),   # exactly 10% is not flagged
        (29.0, False),
        (31.0, False),
    ])
    def test_ten_percent_threshold(self, new, expected):
        assert flag_abnormal_loss(30.0, new) is expected

    def test_no_previous_weight(self):
        assert flag_abnormal_loss(None, 10.0) is False

    def test_custom_ratio(self):
        assert flag_abnormal_loss(30.0, 28.0, ratio=0.95) is True

    def test_loss_percent(self):
        assert loss_percent(30.0, 26.9) == pytest.approx(10.3)


class TestAnimalGrowth:
    def test_row(self, lamb, history):
        row = animal_growth(lamb, history, date(2026, 1, 23))
        assert row["tag"] == "A001"
        assert row["current_weight"] == 23.0
        assert row["gain"] == pytest.approx(3.0)
        assert row["days"] == 30
        assert row["adg"] == 100

    def test_row_before_entry(self, lamb):
        row = animal_growth(lamb, [], date(2025, 12, 20))
        assert row["adg"] is None
        assert row["days"] == -4
