"""API router for data entry: animals, weighings, feed records and incidents."""

import logging

from fastapi import APIRouter, HTTPException, Query

from models.schemas import (
    Animal,
    AnimalInput,
    FeedInput,
    FeedRecord,
    FeedResult,
    Incident,
    IncidentBatch,
    IncidentInput,
    Weighing,
    WeighingInput,
    WeighingResult,
)
from services.trial_session import TrialSession, get_session
from services.trial.records import (
    DuplicateTagError,
    RecordNotFoundError,
    RecordValidationError,
    delete_animal,
    delete_by_id,
    edit_animal,
    record_incidents,
    record_weighing,
    register_animal,
    toggle_active,
    upsert_feed_record,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["records"])


def _session() -> TrialSession:
    try:
        return get_session()
    except RuntimeError:
        raise HTTPException(status_code=500, detail="Trial data not loaded")


def _http_error(e: Exception) -> HTTPException:
    if isinstance(e, DuplicateTagError):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, RecordNotFoundError):
        return HTTPException(status_code=404, detail=f"Record '{e.args[0]}' not found")
    return HTTPException(status_code=400, detail=str(e))


# ── Animals ─────────────────────────────────────────────────────────────

@router.get("/animals", response_model=list[Animal])
def list_animals(
    group: str | None = Query(None, description="Filter by group (A/B)"),
    active: bool | None = Query(None, description="Filter by active flag"),
):
    animals = _session().snapshot.animals
    if group:
        animals = [a for a in animals if a.group == group.upper()]
    if active is not None:
        animals = [a for a in animals if a.active == active]
    return animals


@router.post("/animals", response_model=Animal, status_code=201)
def create_animal(payload: AnimalInput):
    session = _session()
    try:
        animals, animal = register_animal(session.snapshot.animals, payload, session.config)
    except (RecordValidationError, RecordNotFoundError) as e:
        raise _http_error(e)
    session.commit(session.snapshot.model_copy(update={"animals": animals}))
    logger.info("Registered animal %s in group %s", animal.tag, animal.group)
    return animal


@router.put("/animals/{animal_id}", response_model=Animal)
def update_animal(animal_id: str, payload: AnimalInput):
    session = _session()
    try:
        animals, animal = edit_animal(session.snapshot.animals, animal_id, payload, session.config)
    except (RecordValidationError, RecordNotFoundError) as e:
        raise _http_error(e)
    session.commit(session.snapshot.model_copy(update={"animals": animals}))
    return animal


@router.post("/animals/{animal_id}/toggle-active", response_model=Animal)
def toggle_animal(animal_id: str):
    session = _session()
    try:
        animals, animal = toggle_active(session.snapshot.animals, animal_id)
    except RecordNotFoundError as e:
        raise _http_error(e)
    session.commit(session.snapshot.model_copy(update={"animals": animals}))
    return animal


@router.delete("/animals/{animal_id}")
def remove_animal(animal_id: str):
    """Delete an animal and, with it, its weighings and incidents."""
    session = _session()
    try:
        snapshot = delete_animal(session.snapshot, animal_id)
    except RecordNotFoundError as e:
        raise _http_error(e)
    session.commit(snapshot)
    return {"deleted": animal_id}


# ── Weighings ───────────────────────────────────────────────────────────

@router.get("/weighings", response_model=list[Weighing])
def list_weighings(
    tag: str | None = Query(None),
    week: int | None = Query(None),
):
    weighings = _session().snapshot.weighings
    if tag:
        weighings = [w for w in weighings if w.tag == tag.strip().upper()]
    if week is not None:
        weighings = [w for w in weighings if w.week == week]
    return weighings


@router.post("/weighings", response_model=WeighingResult, status_code=201)
def create_weighing(
    payload: WeighingInput,
    confirm: bool = Query(False, description="Accept a weight more than 10% below the previous one"),
):
    session = _session()
    try:
        weighings, check = record_weighing(
            session.snapshot.animals, session.snapshot.weighings, payload, session.config,
        )
    except RecordValidationError as e:
        raise _http_error(e)

    if check["abnormal_loss"] and not confirm:
        raise HTTPException(
            status_code=409,
            detail={
                "message": (
                    f"Weight {payload.weight} kg is {check['loss_pct']}% below the previous "
                    f"weight ({check['previous_weight']:.1f} kg). Resend with confirm=true to record it."
                ),
                "previous_weight": check["previous_weight"],
                "loss_pct": check["loss_pct"],
            },
        )
    session.commit(session.snapshot.model_copy(update={"weighings": weighings}))
    return check


@router.delete("/weighings/{weighing_id}")
def remove_weighing(weighing_id: str):
    session = _session()
    try:
        weighings = delete_by_id(session.snapshot.weighings, weighing_id)
    except RecordNotFoundError as e:
        raise _http_error(e)
    session.commit(session.snapshot.model_copy(update={"weighings": weighings}))
    return {"deleted": weighing_id}


# ── Feed ────────────────────────────────────────────────────────────────

@router.get("/feed", response_model=list[FeedRecord])
def list_feed(group: str | None = Query(None)):
    records = _session().snapshot.feed_records
    if group:
        records = [r for r in records if r.group == group.upper()]
    return sorted(records, key=lambda r: r.date, reverse=True)


@router.post("/feed", response_model=FeedResult, status_code=201)
def create_feed_record(payload: FeedInput):
    """Record a group's daily feed; an existing record for the same day is replaced."""
    session = _session()
    try:
        records, record, replaced = upsert_feed_record(session.snapshot.feed_records, payload)
    except RecordValidationError as e:
        raise _http_error(e)
    session.commit(session.snapshot.model_copy(update={"feed_records": records}))
    return {"record": record, "replaced": replaced}


@router.delete("/feed/{record_id}")
def remove_feed_record(record_id: str):
    session = _session()
    try:
        records = delete_by_id(session.snapshot.feed_records, record_id)
    except RecordNotFoundError as e:
        raise _http_error(e)
    session.commit(session.snapshot.model_copy(update={"feed_records": records}))
    return {"deleted": record_id}


# ── Incidents ───────────────────────────────────────────────────────────

@router.get("/incidents", response_model=list[Incident])
def list_incidents(kind: str | None = Query(None, description="Filter by incident kind")):
    incidents = _session().snapshot.incidents
    if kind:
        incidents = [i for i in incidents if i.kind == kind]
    return sorted(incidents, key=lambda i: i.date, reverse=True)


@router.post("/incidents", response_model=IncidentBatch, status_code=201)
def create_incident(payload: IncidentInput):
    """Record an incident for one animal, one group or every active animal."""
    session = _session()
    try:
        snapshot, batch = record_incidents(session.snapshot, payload)
    except RecordValidationError as e:
        raise _http_error(e)
    session.commit(snapshot)
    logger.info(
        "Recorded %s incident for %d animal(s), %d deactivated",
        payload.kind, len(batch.incidents), len(batch.patches),
    )
    return batch


@router.delete("/incidents/{incident_id}")
def remove_incident(incident_id: str):
    session = _session()
    try:
        incidents = delete_by_id(session.snapshot.incidents, incident_id)
    except RecordNotFoundError as e:
        raise _http_error(e)
    session.commit(session.snapshot.model_copy(update={"incidents": incidents}))
    return {"deleted": incident_id}
