# app/routers/plants.py
"""
Plant management endpoints: CRUD and the derived phase timeline.
"""
from typing import List, Dict, Optional
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.core import config
from app.dependencies import (
    get_db_dependency, get_plant_or_404, load_phases, load_events, store_phases, commit_plant
)
from app.models import Plant, Strain
from app.schemas import PlantCreate, PlantUpdate, PlantRead, PhaseTemplate, TimelineRead
from app.services.phases import create_plant_phases, import_phases, get_current_phase
from app.services.timeline import PlantTimeline
from app.services.notifications import publish_plant_state
from app.utils.dates import parse_datetime, utcnow

router = APIRouter(prefix="/api/plants", tags=["plants"])


def plant_to_read(plant: Plant) -> PlantRead:
    """Build the API view of a plant; the current phase is derived, never stored."""
    phases = load_phases(plant)
    current = get_current_phase(phases)
    return PlantRead(
        id=plant.id,
        name=plant.name,
        strain=plant.strain,
        strain_id=plant.strain_id,
        breeder=plant.breeder,
        phenotype=plant.phenotype,
        medium=plant.medium,
        pot_size_liters=plant.pot_size_liters,
        training_methods=plant.training_methods or [],
        light_schedule=plant.light_schedule or {},
        notes=plant.notes,
        is_active=plant.is_active,
        is_mother_plant=plant.is_mother_plant,
        phases=phases,
        events=load_events(plant),
        current_phase_id=current.id if current else None,
        current_phase_name=current.name if current else None,
        version=plant.version,
        created_at=plant.created_at,
        updated_at=plant.updated_at,
    )


def build_timeline_read(plant: Plant, now: Optional[datetime] = None) -> TimelineRead:
    timeline = PlantTimeline(load_phases(plant), load_events(plant), now)
    return TimelineRead(
        plant_id=plant.id,
        now=timeline.now,
        timeline=timeline.timeline,
        summary=timeline.summary(),
    )


def parse_now(now: Optional[str]) -> Optional[datetime]:
    """Parse an optional ?now= reference instant."""
    try:
        return parse_datetime(now)
    except (ValueError, OverflowError):
        raise HTTPException(400, "Invalid date format for 'now'")


async def resolve_strain(session: AsyncSession, plant_data: PlantCreate) -> Optional[Strain]:
    """Find the strain a new plant should take its phase templates from."""
    if plant_data.strain_id is not None:
        strain = await session.get(Strain, plant_data.strain_id)
        if not strain:
            raise HTTPException(404, "Strain not found")
        return strain
    if plant_data.strain:
        result = await session.execute(select(Strain).where(Strain.name == plant_data.strain))
        return result.scalars().first()
    return None


# Plant CRUD Endpoints

@router.get("", response_model=List[PlantRead])
async def list_plants(
    active_only: bool = Query(False),
    session: AsyncSession = Depends(get_db_dependency())
):
    query = select(Plant).order_by(Plant.created_at.desc(), Plant.id.desc())
    if active_only:
        query = query.where(Plant.is_active == True)
    result = await session.execute(query)
    return [plant_to_read(p) for p in result.scalars().all()]


@router.post("", response_model=PlantRead)
async def create_plant(
    plant_data: PlantCreate,
    session: AsyncSession = Depends(get_db_dependency())
):
    """
    Create a plant and its initial phase sequence.

    Explicit phases win; otherwise the strain's templates are used, falling
    back to the built-in photoperiod/autoflower defaults.
    """
    strain = await resolve_strain(session, plant_data)

    if plant_data.phases:
        phases = import_phases(plant_data.phases)
        source = "import"
    else:
        templates = [PhaseTemplate.model_validate(t) for t in strain.phase_templates] if strain else []
        if plant_data.plant_type is not None:
            is_autoflower = plant_data.plant_type == "autoflower"
        else:
            is_autoflower = bool(strain and strain.is_autoflower)
        phases = create_plant_phases(templates, is_autoflower=is_autoflower)
        source = f"strain '{strain.name}'" if templates else ("autoflower defaults" if is_autoflower else "photoperiod defaults")

    light_schedule = plant_data.light_schedule.model_dump() if plant_data.light_schedule else None
    new_plant = Plant(
        name=plant_data.name,
        strain=plant_data.strain or (strain.name if strain else None),
        strain_id=strain.id if strain else None,
        breeder=plant_data.breeder or (strain.breeder if strain else None),
        phenotype=plant_data.phenotype,
        medium=plant_data.medium,
        pot_size_liters=plant_data.pot_size_liters,
        training_methods=plant_data.training_methods,
        light_schedule=light_schedule or {"vegetation": "18/6", "flowering": "12/12"},
        notes=plant_data.notes,
        is_mother_plant=plant_data.is_mother_plant,
        events=[],
        created_at=utcnow(),
    )
    store_phases(new_plant, phases)

    session.add(new_plant)
    await session.commit()
    await session.refresh(new_plant)

    print(f"[PLANTS] Created plant {new_plant.id} '{new_plant.name}' with {len(phases)} phases from {source}")
    await publish_plant_state(new_plant)
    return plant_to_read(new_plant)


@router.get("/{plant_id}", response_model=PlantRead)
async def get_plant(plant: Plant = Depends(get_plant_or_404)):
    return plant_to_read(plant)


@router.put("/{plant_id}", response_model=PlantRead)
async def update_plant(
    update_data: PlantUpdate,
    plant: Plant = Depends(get_plant_or_404),
    session: AsyncSession = Depends(get_db_dependency())
):
    """Update plant metadata. Phases and events have their own endpoints."""
    changes = update_data.model_dump(exclude_unset=True)
    for field, value in changes.items():
        if value is None and field in ("name", "medium", "pot_size_liters", "training_methods",
                                       "light_schedule", "is_active", "is_mother_plant"):
            continue
        setattr(plant, field, value)
    plant.updated_at = utcnow()

    await commit_plant(session, plant)
    if config.DEBUG:
        print(f"[PLANTS] Updated plant {plant.id}: {', '.join(sorted(changes)) or 'no changes'}")
    return plant_to_read(plant)


@router.delete("/{plant_id}", response_model=Dict[str, str])
async def delete_plant(
    plant: Plant = Depends(get_plant_or_404),
    session: AsyncSession = Depends(get_db_dependency())
):
    plant_id = plant.id
    await session.delete(plant)
    await session.commit()
    print(f"[PLANTS] Deleted plant {plant_id}")
    return {"status": "success", "message": "Plant deleted successfully"}


@router.get("/{plant_id}/timeline", response_model=TimelineRead)
async def get_plant_timeline(
    now: Optional[str] = Query(None, description="Reference instant (ISO 8601), defaults to now"),
    plant: Plant = Depends(get_plant_or_404)
):
    """Per-phase derived state and summary metrics for a plant."""
    return build_timeline_read(plant, parse_now(now))
