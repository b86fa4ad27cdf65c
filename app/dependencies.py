# app/dependencies.py
"""
Common dependency functions and plant persistence helpers for FastAPI routes.
"""
from typing import List
from fastapi import Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from app.models import Plant
from app.schemas import PhaseInstance, PlantEvent
from app.utils.dates import utcnow


def get_db_dependency():
    """Import and return the session dependency shared by all routes"""
    from app.core.database import get_async_session
    return get_async_session


async def get_plant_or_404(
    plant_id: int,
    session: AsyncSession = Depends(get_db_dependency())
) -> Plant:
    plant = await session.get(Plant, plant_id)
    if not plant:
        raise HTTPException(404, "Plant not found")
    return plant


def load_phases(plant: Plant) -> List[PhaseInstance]:
    return [PhaseInstance.model_validate(p) for p in plant.phases or []]


def load_events(plant: Plant) -> List[PlantEvent]:
    return [PlantEvent.model_validate(e) for e in plant.events or []]


def store_phases(plant: Plant, phases: List[PhaseInstance]):
    # Reassign the whole list so the JSON column is flagged dirty
    plant.phases = [p.model_dump(mode="json") for p in phases]
    plant.updated_at = utcnow()


def store_events(plant: Plant, events: List[PlantEvent]):
    plant.events = [e.model_dump(mode="json") for e in events]
    plant.updated_at = utcnow()


async def commit_plant(session: AsyncSession, plant: Plant):
    """
    Commit pending plant changes.

    A concurrent writer that saved the same plant first bumps its version,
    which surfaces here as a 409 so the client can reload and retry.
    """
    plant_id = plant.id
    try:
        await session.commit()
    except StaleDataError:
        await session.rollback()
        print(f"[PLANTS] Stale write rejected for plant {plant_id}")
        raise HTTPException(409, "Plant was modified by another request, reload and try again")
    await session.refresh(plant)
