"""Data-entry operations over the snapshot collections.

Every function takes the current collections and returns new ones; inputs are
never modified. Entry rules (weight range, unique tags, refused <= offered)
are checked here and reported by raising RecordValidationError.

Incidents follow a two-step protocol: create_incidents() returns the new
incidents together with the animal patches they imply (withdrawal and death
take the animal off trial), and the caller applies both with
apply_animal_patches() before saving.
"""

import logging
import uuid

from models.schemas import (
    EXIT_KINDS,
    Animal,
    AnimalInput,
    AnimalPatch,
    FeedInput,
    FeedRecord,
    Incident,
    IncidentBatch,
    IncidentInput,
    TrialSnapshot,
    Weighing,
    WeighingInput,
)
from models.trial_config import TrialConfig
from services.trial.calendar import week_number
from services.trial.growth import flag_abnormal_loss, loss_percent, weight_before

logger = logging.getLogger(__name__)

EXIT_REASON_PREFIX = {
    "death": "Death",
    "withdrawal": "Withdrawn from trial",
}


class RecordValidationError(ValueError):
    """Entry rejected by a data-entry rule."""


class DuplicateTagError(RecordValidationError):
    pass


class UnknownAnimalError(RecordValidationError):
    pass


class RecordNotFoundError(KeyError):
    pass


def new_id() -> str:
    return uuid.uuid4().hex


def normalize_tag(tag: str) -> str:
    return tag.strip().upper()


def _check_weight(weight: float, config: TrialConfig, what: str = "Weight"):
    if weight <= 0 or weight > config.max_weight_kg:
        raise RecordValidationError(f"{what} must be between 0 and {config.max_weight_kg:g} kg")


def find_animal_by_tag(animals: list[Animal], tag: str) -> Animal | None:
    tag = normalize_tag(tag)
    return next((a for a in animals if a.tag == tag), None)


def _get_animal(animals: list[Animal], animal_id: str) -> Animal:
    for a in animals:
        if a.id == animal_id:
            return a
    raise RecordNotFoundError(animal_id)


# ── Animals ─────────────────────────────────────────────────────────────

def register_animal(animals: list[Animal], data: AnimalInput, config: TrialConfig) -> tuple[list[Animal], Animal]:
    tag = normalize_tag(data.tag)
    if not tag:
        raise RecordValidationError("Tag is required")
    if any(a.tag == tag for a in animals):
        raise DuplicateTagError(f"An animal with tag {tag} already exists")
    _check_weight(data.initial_weight, config, "Initial weight")

    animal = Animal(id=new_id(), **data.model_dump(exclude={"tag"}), tag=tag)
    return [*animals, animal], animal


def edit_animal(
    animals: list[Animal], animal_id: str, data: AnimalInput, config: TrialConfig,
) -> tuple[list[Animal], Animal]:
    """Overwrite an animal's entry fields; active flag and registration time are kept."""
    existing = _get_animal(animals, animal_id)
    tag = normalize_tag(data.tag)
    if any(a.tag == tag and a.id != animal_id for a in animals):
        raise DuplicateTagError(f"Another animal already has tag {tag}")
    _check_weight(data.initial_weight, config, "Initial weight")

    updated = existing.model_copy(update={**data.model_dump(exclude={"tag"}), "tag": tag})
    return [updated if a.id == animal_id else a for a in animals], updated


def toggle_active(animals: list[Animal], animal_id: str) -> tuple[list[Animal], Animal]:
    existing = _get_animal(animals, animal_id)
    updated = existing.model_copy(update={"active": not existing.active})
    return [updated if a.id == animal_id else a for a in animals], updated


def delete_animal(snapshot: TrialSnapshot, animal_id: str) -> TrialSnapshot:
    """Remove an animal together with its weighings and incidents."""
    animal = _get_animal(snapshot.animals, animal_id)
    weighings = [w for w in snapshot.weighings if w.tag != animal.tag]
    incidents = [i for i in snapshot.incidents if i.tag != animal.tag]
    logger.info(
        "Deleting animal %s: %d weighings, %d incidents cascaded",
        animal.tag,
        len(snapshot.weighings) - len(weighings),
        len(snapshot.incidents) - len(incidents),
    )
    return snapshot.model_copy(update={
        "animals": [a for a in snapshot.animals if a.id != animal_id],
        "weighings": weighings,
        "incidents": incidents,
    })


# ── Weighings ───────────────────────────────────────────────────────────

def record_weighing(
    animals: list[Animal],
    weighings: list[Weighing],
    data: WeighingInput,
    config: TrialConfig,
) -> tuple[list[Weighing], dict]:
    """Append a weighing; returns the new list and the loss check for it.

    The check compares against the last weight before the entry's date and
    is advisory: the entry is recorded either way.
    """
    _check_weight(data.weight, config)
    animal = find_animal_by_tag(animals, data.tag)
    if animal is None:
        raise UnknownAnimalError(f"No animal with tag {normalize_tag(data.tag)}")

    previous = weight_before(animal, weighings, data.date)
    week = data.week if data.week is not None else week_number(data.date, config)
    weighing = Weighing(
        id=new_id(),
        tag=animal.tag,
        date=data.date,
        weight=data.weight,
        week=week,
        notes=data.notes.strip(),
    )
    abnormal = flag_abnormal_loss(previous, data.weight, config.abnormal_loss_ratio)
    check = {
        "weighing": weighing,
        "abnormal_loss": abnormal,
        "previous_weight": previous,
        "loss_pct": loss_percent(previous, data.weight) if abnormal else None,
    }
    return [*weighings, weighing], check


# ── Feed ────────────────────────────────────────────────────────────────

def upsert_feed_record(records: list[FeedRecord], data: FeedInput) -> tuple[list[FeedRecord], FeedRecord, bool]:
    """Store one record per (group, date); an existing pair is replaced.

    Returns (records, new_record, replaced).
    """
    if data.feed_refused > data.feed_offered:
        raise RecordValidationError("Feed refused cannot exceed feed offered")
    if data.forage_refused > data.forage_offered:
        raise RecordValidationError("Forage refused cannot exceed forage offered")

    kept = [r for r in records if not (r.group == data.group and r.date == data.date)]
    replaced = len(kept) != len(records)
    record = FeedRecord(id=new_id(), **data.model_dump())
    if replaced:
        logger.info("Replacing feed record for group %s on %s", data.group, data.date)
    return [*kept, record], record, replaced


# ── Incidents ───────────────────────────────────────────────────────────

def _target_tags(animals: list[Animal], data: IncidentInput) -> list[str]:
    if data.scope == "individual":
        if not data.tag:
            raise RecordValidationError("An individual incident needs a tag")
        return [normalize_tag(data.tag)]
    if data.scope == "group":
        if data.group is None:
            raise RecordValidationError("A group incident needs a group")
        return [a.tag for a in animals if a.group == data.group and a.active]
    return [a.tag for a in animals if a.active]


def create_incidents(animals: list[Animal], data: IncidentInput) -> IncidentBatch:
    """Build one incident per affected animal plus the deactivation patches.

    Nothing is written: the caller appends the incidents and applies the
    patches together.
    """
    if data.kind == "treatment" and data.medication is None:
        raise RecordValidationError("A treatment needs medication details")

    tags = _target_tags(animals, data)
    if not tags:
        raise RecordValidationError("No active animals selected for this incident")

    description = data.description.strip()
    incidents = []
    patches = []
    for tag in tags:
        incidents.append(Incident(
            id=new_id(),
            tag=tag,
            date=data.date,
            kind=data.kind,
            description=description,
            medication=data.medication if data.kind == "treatment" else None,
            scope=data.scope,
        ))
        if data.kind in EXIT_KINDS:
            animal = find_animal_by_tag(animals, tag)
            if animal is not None:
                patches.append(AnimalPatch(
                    animal_id=animal.id,
                    active=False,
                    exit_date=data.date,
                    exit_reason=f"{EXIT_REASON_PREFIX[data.kind]}: {description}",
                ))

    return IncidentBatch(incidents=incidents, patches=patches)


def apply_animal_patches(animals: list[Animal], patches: list[AnimalPatch]) -> list[Animal]:
    by_id = {p.animal_id: p for p in patches}
    out = []
    for a in animals:
        patch = by_id.get(a.id)
        if patch is None:
            out.append(a)
            continue
        out.append(a.model_copy(update=patch.model_dump(exclude={"animal_id"})))
    return out


def record_incidents(snapshot: TrialSnapshot, data: IncidentInput) -> tuple[TrialSnapshot, IncidentBatch]:
    """Create incidents and apply their patches in one snapshot update."""
    batch = create_incidents(snapshot.animals, data)
    updated = snapshot.model_copy(update={
        "incidents": [*snapshot.incidents, *batch.incidents],
        "animals": apply_animal_patches(snapshot.animals, batch.patches),
    })
    return updated, batch


# ── Generic removal ─────────────────────────────────────────────────────

def delete_by_id(items: list, item_id: str) -> list:
    kept = [x for x in items if x.id != item_id]
    if len(kept) == len(items):
        raise RecordNotFoundError(item_id)
    return kept
