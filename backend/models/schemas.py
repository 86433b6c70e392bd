from datetime import date, datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field

Group = Literal["A", "B"]
IncidentKind = Literal["symptom", "treatment", "withdrawal", "death", "other"]
IncidentScope = Literal["individual", "group", "all"]

# Incident kinds that take the animal off the trial
EXIT_KINDS = {"withdrawal", "death"}


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ── Stored entities ─────────────────────────────────────────────────────

class Animal(BaseModel):
    id: str
    tag: str
    group: Group
    initial_weight: float
    entry_date: date
    notes: str = ""
    active: bool = True
    registered_at: datetime = Field(default_factory=_now)
    exit_date: date | None = None
    exit_reason: str | None = None


class Weighing(BaseModel):
    id: str
    tag: str
    date: date
    weight: float
    week: int | None = None  # explicit override or calendar-derived
    notes: str = ""
    registered_at: datetime = Field(default_factory=_now)


class FeedRecord(BaseModel):
    id: str
    group: Group
    date: date
    feed_offered: float
    feed_refused: float = 0.0
    forage_offered: float = 0.0
    forage_refused: float = 0.0
    registered_at: datetime = Field(default_factory=_now)


class Medication(BaseModel):
    name: str
    form: str = "injectable"
    dose: str = ""
    unit: str = "ml"
    route: str = ""
    duration_days: int = Field(1, ge=1)
    notes: str = ""


class Incident(BaseModel):
    id: str
    tag: str
    date: date
    kind: IncidentKind
    description: str = ""
    medication: Medication | None = None
    scope: IncidentScope = "individual"
    registered_at: datetime = Field(default_factory=_now)


class TrialSnapshot(BaseModel):
    """Full dataset as persisted: one array per collection, insertion-ordered."""
    format_version: str = "2.0"
    created_at: datetime = Field(default_factory=_now)
    trial_end: date | None = None
    animals: list[Animal] = []
    weighings: list[Weighing] = []
    feed_records: list[FeedRecord] = []
    incidents: list[Incident] = []


# ── Entry payloads ──────────────────────────────────────────────────────

class AnimalInput(BaseModel):
    tag: str
    group: Group
    initial_weight: float
    entry_date: date
    notes: str = ""


class WeighingInput(BaseModel):
    tag: str
    date: date
    weight: float
    week: int | None = None
    notes: str = ""


class FeedInput(BaseModel):
    group: Group
    date: date
    feed_offered: float = Field(ge=0)
    feed_refused: float = Field(0.0, ge=0)
    forage_offered: float = Field(0.0, ge=0)
    forage_refused: float = Field(0.0, ge=0)


class IncidentInput(BaseModel):
    scope: IncidentScope = "individual"
    tag: str | None = None  # required for individual scope
    group: Group | None = None  # required for group scope
    date: date
    kind: IncidentKind
    description: str = ""
    medication: Medication | None = None


class AnimalPatch(BaseModel):
    """State change to apply to an animal after an incident is recorded."""
    animal_id: str
    active: bool
    exit_date: date | None = None
    exit_reason: str | None = None


class IncidentBatch(BaseModel):
    incidents: list[Incident]
    patches: list[AnimalPatch] = []


# ── Report responses ────────────────────────────────────────────────────

class AnimalGrowth(BaseModel):
    animal_id: str
    tag: str
    group: Group
    active: bool
    initial_weight: float
    current_weight: float
    gain: float
    adg: int | None = None  # g/day
    days: int


class GroupSummary(BaseModel):
    group: str
    label: str | None = None
    available: bool
    count: int = 0
    mean_initial_weight: float | None = None
    mean_current_weight: float | None = None
    mean_gain: float | None = None
    mean_adg: float | None = None
    mean_days_on_trial: float | None = None
    total_net_feed: float | None = None


class ConversionRow(BaseModel):
    group: str
    label: str
    total_net_feed: float
    total_gain: float
    conversion_index: float | None = None


class TrialOverview(BaseModel):
    total_animals: int
    active_animals: int
    animals_by_group: dict[str, int]
    total_weighings: int


class WeighingResult(BaseModel):
    weighing: Weighing
    abnormal_loss: bool
    previous_weight: float | None = None
    loss_pct: float | None = None


class FeedResult(BaseModel):
    record: FeedRecord
    replaced: bool
