# app/routers/events.py
"""
Care event endpoints for a plant: log, edit, delete, filter and aggregate.
"""
from typing import List, Dict, Any, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import config
from app.dependencies import (
    get_db_dependency, get_plant_or_404, load_phases, load_events, store_events, commit_plant
)
from app.models import Plant
from app.schemas import PlantEvent, EventCreate, EventUpdate, EventStats, DaysSinceEvent, EventType
from app.services import events as event_ops
from app.services.notifications import publish_plant_state
from app.routers.plants import parse_now
from app.utils.dates import parse_datetime

router = APIRouter(prefix="/api/plants/{plant_id}/events", tags=["events"])
types_router = APIRouter(prefix="/api/event-types", tags=["events"])


def parse_timestamp(value: Optional[str], field: str = "timestamp"):
    try:
        return parse_datetime(value)
    except (ValueError, OverflowError):
        raise HTTPException(400, f"Invalid date format for '{field}'")


@types_router.get("", response_model=Dict[str, Any])
async def get_event_types():
    """Event kinds metadata and quick-entry templates."""
    return {
        "types": event_ops.EVENT_TYPES,
        "quick_templates": event_ops.QUICK_EVENT_TEMPLATES,
    }


@router.get("", response_model=List[PlantEvent])
async def list_events(
    type: Optional[EventType] = Query(None),
    phase_id: Optional[str] = Query(None),
    start: Optional[str] = Query(None, description="ISO 8601, inclusive"),
    end: Optional[str] = Query(None, description="ISO 8601, inclusive"),
    plant: Plant = Depends(get_plant_or_404)
):
    """List a plant's events, newest first, with optional filters."""
    events = load_events(plant)
    if type:
        events = event_ops.get_events_by_type(events, type)
    if phase_id:
        events = event_ops.get_events_by_phase(events, phase_id)
    if start or end:
        events = event_ops.get_events_in_date_range(
            events, parse_timestamp(start, "start"), parse_timestamp(end, "end")
        )
    return events


@router.post("", response_model=PlantEvent)
async def create_event(
    event_data: EventCreate,
    plant: Plant = Depends(get_plant_or_404),
    session: AsyncSession = Depends(get_db_dependency())
):
    """Log an event, linked to whichever phase is current right now."""
    event = event_ops.create_event(
        event_data.type,
        event_data.title,
        data=event_data.data,
        notes=event_data.notes,
        description=event_data.description,
        timestamp=parse_timestamp(event_data.timestamp),
    )
    event = event_ops.link_event_to_current_phase(event, load_phases(plant))

    store_events(plant, event_ops.add_event_to_plant(load_events(plant), event))
    await commit_plant(session, plant)

    print(f"[EVENTS] Plant {plant.id}: logged {event.type} '{event.title}'")
    await publish_plant_state(plant)
    return event


@router.get("/stats", response_model=EventStats)
async def get_event_stats(
    now: Optional[str] = Query(None),
    plant: Plant = Depends(get_plant_or_404)
):
    """Per-type counts overall and over the last 7 and 30 days."""
    return event_ops.get_event_stats(load_events(plant), parse_now(now))


@router.get("/days-since", response_model=DaysSinceEvent)
async def get_days_since(
    type: EventType = Query(...),
    phase_id: Optional[str] = Query(None),
    now: Optional[str] = Query(None),
    plant: Plant = Depends(get_plant_or_404)
):
    days = event_ops.get_days_since_last_event(load_events(plant), type, now=parse_now(now), phase_id=phase_id)
    return DaysSinceEvent(type=type, phase_id=phase_id, days=days)


@router.patch("/{event_id}", response_model=PlantEvent)
async def update_event(
    event_id: str,
    update: EventUpdate,
    plant: Plant = Depends(get_plant_or_404),
    session: AsyncSession = Depends(get_db_dependency())
):
    events = load_events(plant)
    if event_ops.find_event(events, event_id) is None:
        raise HTTPException(404, "Event not found")

    changes = update.model_dump(exclude_unset=True)
    if "timestamp" in changes:
        changes["timestamp"] = parse_timestamp(changes["timestamp"])
    if "data" in changes and update.data is not None:
        changes["data"] = update.data

    events = event_ops.update_event(events, event_id, **changes)
    store_events(plant, events)
    await commit_plant(session, plant)

    if config.DEBUG:
        print(f"[EVENTS] Plant {plant.id}: updated event {event_id} ({', '.join(sorted(changes))})")
    await publish_plant_state(plant)
    return event_ops.find_event(events, event_id)


@router.delete("/{event_id}", response_model=Dict[str, str])
async def delete_event(
    event_id: str,
    plant: Plant = Depends(get_plant_or_404),
    session: AsyncSession = Depends(get_db_dependency())
):
    events = load_events(plant)
    if event_ops.find_event(events, event_id) is None:
        raise HTTPException(404, "Event not found")

    store_events(plant, event_ops.delete_event(events, event_id))
    await commit_plant(session, plant)

    print(f"[EVENTS] Plant {plant.id}: deleted event {event_id}")
    await publish_plant_state(plant)
    return {"status": "success", "message": "Event deleted successfully"}
