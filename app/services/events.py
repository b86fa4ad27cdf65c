# app/services/events.py
"""
Care event helpers: creating events, linking them to the current phase,
and read-only aggregation over a plant's flat event log.

A plant's events are kept newest-first. An event's phase_id is a weak
reference; it may name a phase that has since been deleted, in which case
the event is simply treated as unlinked.
"""
from datetime import datetime, timedelta
from typing import List, Optional, Sequence, Dict, Any
from uuid import uuid4

from app.schemas.event import PlantEvent, EventData, EventStats
from app.schemas.phase import PhaseInstance
from app.services.phases import get_current_phase
from app.utils.dates import days_between, to_naive_utc, utcnow


EVENT_TYPES: Dict[str, Dict[str, Any]] = {
    "watering": {
        "icon": "💧",
        "color": "#2196F3",
        "title": "Watering",
        "fields": ["amount_ml", "ph_level", "ec_ppm", "water_temperature", "runoff_ph", "runoff_ec"],
    },
    "feeding": {
        "icon": "🧪",
        "color": "#4CAF50",
        "title": "Feeding",
        "fields": ["amount_ml", "nutrients", "ph_level", "ec_ppm"],
    },
    "observation": {
        "icon": "👁️",
        "color": "#FF9800",
        "title": "Observation",
        "fields": ["observation_type", "severity", "resolved", "photos"],
    },
    "training": {
        "icon": "✂️",
        "color": "#9C27B0",
        "title": "Training",
        "fields": ["training_method", "photos"],
    },
    "harvest": {
        "icon": "🌾",
        "color": "#795548",
        "title": "Harvest",
        "fields": ["wet_weight", "dry_weight", "photos"],
    },
    "transplant": {
        "icon": "🪴",
        "color": "#607D8B",
        "title": "Transplant",
        "fields": ["photos"],
    },
    "custom": {
        "icon": "📝",
        "color": "#616161",
        "title": "Custom Event",
        "fields": ["custom_fields"],
    },
}

QUICK_EVENT_TEMPLATES: Dict[str, List[Dict[str, Any]]] = {
    "watering": [
        {"title": "Plain Water", "data": {"amount_ml": 500}},
        {"title": "Light Watering", "data": {"amount_ml": 250}},
        {"title": "Deep Watering", "data": {"amount_ml": 1000}},
    ],
    "feeding": [
        {"title": "Veg Nutrients", "data": {"amount_ml": 500, "nutrients": [{"name": "Veg NPK", "amount_ml": 10}]}},
        {"title": "Bloom Nutrients", "data": {"amount_ml": 500, "nutrients": [{"name": "Bloom NPK", "amount_ml": 15}]}},
        {"title": "Cal-Mag", "data": {"amount_ml": 500, "nutrients": [{"name": "Cal-Mag", "amount_ml": 5}]}},
    ],
    "observation": [
        {"title": "Healthy Growth", "data": {"observation_type": "health", "severity": "low"}},
        {"title": "Pest Check", "data": {"observation_type": "pest"}},
        {"title": "Deficiency Spotted", "data": {"observation_type": "deficiency", "severity": "medium"}},
    ],
    "training": [
        {"title": "LST", "data": {"training_method": "Low Stress Training"}},
        {"title": "Topping", "data": {"training_method": "Topping"}},
        {"title": "Defoliation", "data": {"training_method": "Defoliation"}},
    ],
}


def create_event(
    event_type: str,
    title: str,
    data: Optional[EventData] = None,
    notes: Optional[str] = None,
    phase_id: Optional[str] = None,
    description: Optional[str] = None,
    timestamp: Optional[datetime] = None
) -> PlantEvent:
    return PlantEvent(
        id=str(uuid4()),
        timestamp=to_naive_utc(timestamp) if timestamp is not None else utcnow(),
        type=event_type,
        title=title,
        description=description,
        data=data,
        notes=notes,
        phase_id=phase_id,
    )


def link_event_to_current_phase(event: PlantEvent, phases: Sequence[PhaseInstance]) -> PlantEvent:
    """Stamp the event with the id of the phase that is current right now."""
    current = get_current_phase(phases)
    return event.model_copy(update={"phase_id": current.id if current else None})


def sort_events(events: Sequence[PlantEvent]) -> List[PlantEvent]:
    return sorted(events, key=lambda event: event.timestamp, reverse=True)


def add_event_to_plant(events: Sequence[PlantEvent], event: PlantEvent) -> List[PlantEvent]:
    return sort_events([*events, event])


def find_event(events: Sequence[PlantEvent], event_id: str) -> Optional[PlantEvent]:
    for event in events:
        if event.id == event_id:
            return event
    return None


def update_event(events: Sequence[PlantEvent], event_id: str, **changes) -> List[PlantEvent]:
    """Apply non-None changes to one event. The id is never changed."""
    changes.pop("id", None)
    update = {key: value for key, value in changes.items() if value is not None}
    if "timestamp" in update:
        update["timestamp"] = to_naive_utc(update["timestamp"])
    updated = [
        event.model_copy(update=update) if event.id == event_id else event
        for event in events
    ]
    return sort_events(updated)


def delete_event(events: Sequence[PlantEvent], event_id: str) -> List[PlantEvent]:
    return [event for event in events if event.id != event_id]


def get_events_by_type(events: Sequence[PlantEvent], event_type: str) -> List[PlantEvent]:
    return [event for event in events if event.type == event_type]


def get_events_by_phase(events: Sequence[PlantEvent], phase_id: str) -> List[PlantEvent]:
    return [event for event in events if event.phase_id == phase_id]


def get_events_in_date_range(
    events: Sequence[PlantEvent],
    start: Optional[datetime] = None,
    end: Optional[datetime] = None
) -> List[PlantEvent]:
    """Events with start <= timestamp <= end; either bound may be open."""
    start, end = to_naive_utc(start), to_naive_utc(end)
    return [
        event for event in events
        if (start is None or event.timestamp >= start) and (end is None or event.timestamp <= end)
    ]


def resolve_event_phase(event: PlantEvent, phases: Sequence[PhaseInstance]) -> Optional[PhaseInstance]:
    """The phase an event is linked to, or None if unlinked or the phase is gone."""
    if event.phase_id is None:
        return None
    for phase in phases:
        if phase.id == event.phase_id:
            return phase
    return None


def unlinked_events(events: Sequence[PlantEvent], phases: Sequence[PhaseInstance]) -> List[PlantEvent]:
    return [event for event in events if resolve_event_phase(event, phases) is None]


def get_last_event_of_type(
    events: Sequence[PlantEvent],
    event_type: str,
    phase_id: Optional[str] = None
) -> Optional[PlantEvent]:
    candidates = get_events_by_type(events, event_type)
    if phase_id is not None:
        candidates = [event for event in candidates if event.phase_id == phase_id]
    if not candidates:
        return None
    return max(candidates, key=lambda event: event.timestamp)


def get_days_since_last_event(
    events: Sequence[PlantEvent],
    event_type: str,
    now: Optional[datetime] = None,
    phase_id: Optional[str] = None
) -> Optional[int]:
    last = get_last_event_of_type(events, event_type, phase_id)
    if last is None:
        return None
    now = to_naive_utc(now) if now is not None else utcnow()
    return days_between(last.timestamp, now)


def get_event_stats(events: Sequence[PlantEvent], now: Optional[datetime] = None) -> EventStats:
    """Counts by type overall and over the trailing 7 and 30 days."""
    now = to_naive_utc(now) if now is not None else utcnow()
    week_ago = now - timedelta(days=7)
    month_ago = now - timedelta(days=30)

    by_type: Dict[str, int] = {}
    by_type_week: Dict[str, int] = {}
    by_type_month: Dict[str, int] = {}
    this_week = 0
    this_month = 0

    for event in events:
        by_type[event.type] = by_type.get(event.type, 0) + 1
        if event.timestamp >= week_ago:
            this_week += 1
            by_type_week[event.type] = by_type_week.get(event.type, 0) + 1
        if event.timestamp >= month_ago:
            this_month += 1
            by_type_month[event.type] = by_type_month.get(event.type, 0) + 1

    return EventStats(
        total=len(events),
        by_type=by_type,
        this_week=this_week,
        this_month=this_month,
        by_type_this_week=by_type_week,
        by_type_this_month=by_type_month,
    )
