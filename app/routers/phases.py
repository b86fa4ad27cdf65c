# app/routers/phases.py
"""
Phase management endpoints for a plant: import/export, insert, edit, delete,
start dates, advancing, reordering.

Every mutation goes through the timeline engine, which returns a new phase
list; the router persists it and publishes the new derived state.
"""
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Query, Body
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import config
from app.dependencies import (
    get_db_dependency, get_plant_or_404, load_phases, load_events, store_phases, commit_plant
)
from app.models import Plant
from app.schemas import (
    PhaseInstance,
    PhaseTemplate,
    PhaseImport,
    PhaseStartDateUpdate,
    PhaseDetailsUpdate,
    PhaseInsert,
    PhaseReorder,
    PhaseMove,
    PhaseDateRange,
    TimelineRead,
)
from app.services.phases import PhaseError, import_phases, export_phase_templates
from app.services.timeline import PlantTimeline
from app.services.notifications import publish_plant_state
from app.routers.plants import build_timeline_read
from app.utils.dates import parse_datetime, format_day

router = APIRouter(prefix="/api/plants/{plant_id}/phases", tags=["phases"])


def plant_timeline(plant: Plant) -> PlantTimeline:
    return PlantTimeline(load_phases(plant), load_events(plant))


def phase_index_or_404(timeline: PlantTimeline, phase_id: str) -> int:
    index = timeline.get_phase_index(phase_id)
    if index < 0:
        raise HTTPException(404, "Phase not found")
    return index


async def save_timeline(session: AsyncSession, plant: Plant, timeline: PlantTimeline) -> TimelineRead:
    store_phases(plant, timeline.phases)
    await commit_plant(session, plant)
    await publish_plant_state(plant)
    return build_timeline_read(plant)


@router.get("", response_model=List[PhaseInstance])
async def list_phases(plant: Plant = Depends(get_plant_or_404)):
    return load_phases(plant)


@router.put("", response_model=TimelineRead)
async def replace_phases(
    phases: List[PhaseImport] = Body(...),
    plant: Plant = Depends(get_plant_or_404),
    session: AsyncSession = Depends(get_db_dependency())
):
    """Replace the whole phase list (phase import). Missing ids are minted."""
    if not phases:
        raise HTTPException(400, "Must have at least one phase")
    imported = import_phases(phases)
    print(f"[PHASES] Imported {len(imported)} phases into plant {plant.id}")
    return await save_timeline(session, plant, PlantTimeline(imported, load_events(plant)))


@router.get("/export", response_model=List[PhaseTemplate])
async def export_phases(plant: Plant = Depends(get_plant_or_404)):
    """Current phases as reusable templates (no ids or dates)."""
    return export_phase_templates(load_phases(plant))


@router.post("", response_model=TimelineRead)
async def insert_phase(
    insert: PhaseInsert,
    plant: Plant = Depends(get_plant_or_404),
    session: AsyncSession = Depends(get_db_dependency())
):
    timeline = plant_timeline(plant).insert_phase(insert.template, insert.position)
    print(f"[PHASES] Inserted phase '{insert.template.name}' into plant {plant.id}")
    return await save_timeline(session, plant, timeline)


@router.post("/advance", response_model=TimelineRead)
async def advance_phase(
    force: bool = Query(False, description="Start the next phase even if the minimum duration is not met"),
    plant: Plant = Depends(get_plant_or_404),
    session: AsyncSession = Depends(get_db_dependency())
):
    timeline = plant_timeline(plant)
    current = timeline.current_phase
    if current is None:
        raise HTTPException(400, "No phase has started yet")
    if timeline.current_phase_index >= len(timeline.phases) - 1:
        raise HTTPException(400, "Current phase is the last phase")
    if not force and not timeline.can_advance_to_next_phase():
        raise HTTPException(
            400,
            f"Phase '{current.name}' needs {timeline.days_until_next_phase} more day(s) before advancing"
        )

    advanced = timeline.advance_to_next(force=force)
    print(f"[PHASES] Plant {plant.id} advanced from '{current.name}' to '{advanced.current_phase.name}'"
          f"{' (forced)' if force else ''}")
    return await save_timeline(session, plant, advanced)


@router.put("/order", response_model=TimelineRead)
async def reorder_phases(
    reorder: PhaseReorder,
    plant: Plant = Depends(get_plant_or_404),
    session: AsyncSession = Depends(get_db_dependency())
):
    try:
        timeline = plant_timeline(plant).reorder(reorder.phase_ids)
    except PhaseError as e:
        raise HTTPException(400, str(e))
    if config.DEBUG:
        print(f"[PHASES] Reordered phases of plant {plant.id}")
    return await save_timeline(session, plant, timeline)


@router.post("/move", response_model=TimelineRead)
async def move_phase(
    move: PhaseMove,
    plant: Plant = Depends(get_plant_or_404),
    session: AsyncSession = Depends(get_db_dependency())
):
    try:
        timeline = plant_timeline(plant).move_phase(move.from_index, move.to_index)
    except PhaseError as e:
        raise HTTPException(400, str(e))
    return await save_timeline(session, plant, timeline)


@router.patch("/{phase_id}", response_model=TimelineRead)
async def update_phase(
    phase_id: str,
    update: PhaseDetailsUpdate,
    plant: Plant = Depends(get_plant_or_404),
    session: AsyncSession = Depends(get_db_dependency())
):
    """Edit a phase's name, durations, description, notes or harvest flag."""
    timeline = plant_timeline(plant)
    phase_index_or_404(timeline, phase_id)
    try:
        timeline = timeline.update_phase_details(phase_id, **update.model_dump(exclude_unset=True))
    except PhaseError as e:
        raise HTTPException(400, str(e))
    return await save_timeline(session, plant, timeline)


@router.delete("/{phase_id}", response_model=TimelineRead)
async def delete_phase(
    phase_id: str,
    plant: Plant = Depends(get_plant_or_404),
    session: AsyncSession = Depends(get_db_dependency())
):
    """Delete an unstarted phase. Events linked to it keep their phase_id."""
    timeline = plant_timeline(plant)
    phase_index_or_404(timeline, phase_id)
    check = timeline.can_delete_phase(phase_id)
    if not check.is_valid:
        raise HTTPException(400, check.error)

    print(f"[PHASES] Deleted phase {phase_id} from plant {plant.id}")
    return await save_timeline(session, plant, timeline.delete_phase(phase_id))


@router.put("/{phase_id}/start-date", response_model=TimelineRead)
async def update_phase_start_date(
    phase_id: str,
    update: PhaseStartDateUpdate,
    plant: Plant = Depends(get_plant_or_404),
    session: AsyncSession = Depends(get_db_dependency())
):
    """Set or clear a phase's start date, within its neighbours' bounds."""
    timeline = plant_timeline(plant)
    index = phase_index_or_404(timeline, phase_id)
    try:
        start_date = parse_datetime(update.start_date)
    except (ValueError, OverflowError):
        raise HTTPException(400, "Invalid date format")

    check = timeline.validate_phase_date(index, start_date)
    if not check.is_valid:
        raise HTTPException(400, check.error)

    print(f"[PHASES] Plant {plant.id} phase '{timeline.phases[index].name}' start date -> {format_day(start_date)}")
    return await save_timeline(session, plant, timeline.update_phase_start_date(phase_id, start_date))


@router.get("/{phase_id}/date-range", response_model=PhaseDateRange)
async def get_phase_date_range(
    phase_id: str,
    plant: Plant = Depends(get_plant_or_404)
):
    """Earliest and latest start date the phase may be given."""
    timeline = plant_timeline(plant)
    index = phase_index_or_404(timeline, phase_id)
    return timeline.date_range_for_phase(index)
