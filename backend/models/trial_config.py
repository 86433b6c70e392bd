"""Immutable trial configuration injected into the calendar, records and reports."""

from datetime import date

from pydantic import BaseModel, ConfigDict, model_validator


class TrialConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Arrival weighing day: no week number
    arrival_date: date = date(2025, 12, 18)
    # Baseline week (week 0) starts here
    trial_start: date = date(2025, 12, 24)
    # Week 1 starts here; later weeks every 7 days
    week1_start: date = date(2025, 12, 31)

    # Calendar range where entries can be made
    study_start: date = date(2025, 12, 23)
    study_end: date = date(2026, 2, 4)

    groups: dict[str, str] = {"A": "Ad libitum", "B": "85%"}

    max_weight_kg: float = 100.0
    abnormal_loss_ratio: float = 0.9

    @model_validator(mode="after")
    def _check_boundaries(self) -> "TrialConfig":
        if not (self.arrival_date <= self.trial_start < self.week1_start):
            raise ValueError("expected arrival_date <= trial_start < week1_start")
        if self.study_start > self.study_end:
            raise ValueError("study_start must not be after study_end")
        if not 0 < self.abnormal_loss_ratio <= 1:
            raise ValueError("abnormal_loss_ratio must be in (0, 1]")
        return self

    def group_label(self, group: str) -> str:
        return self.groups.get(group, f"Group {group}")
