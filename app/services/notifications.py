# app/services/notifications.py
"""
Notification sink for derived plant phase state.

After a plant's phases or events change, its computed phase state is pushed
to websocket subscribers of that plant and, when configured, written to Home
Assistant sensor entities. Delivery failures are logged and swallowed so they
never fail the request that triggered them.
"""
from typing import Dict, List, Any, Optional
from collections import defaultdict
from datetime import datetime

import httpx
from fastapi import WebSocket

from app.core import config
from app.schemas.event import PlantEvent
from app.schemas.phase import PhaseInstance
from app.services.timeline import PlantTimeline
from app.utils.dates import utcnow

# Websocket subscribers keyed by plant id
plant_connections: Dict[int, List[WebSocket]] = defaultdict(list)


def build_phase_state(plant, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Compute the phase state published for a plant.

    Args:
        plant: Plant ORM instance (phases/events stored as JSON)
        now: Reference instant (defaults to wall-clock now)

    Returns:
        JSON-ready dict with the current phase and summary metrics
    """
    phases = [PhaseInstance.model_validate(p) for p in plant.phases or []]
    events = [PlantEvent.model_validate(e) for e in plant.events or []]
    timeline = PlantTimeline(phases, events, now)
    summary = timeline.summary()
    current = timeline.current_phase_info

    return {
        "type": "phase_state",
        "plant_id": plant.id,
        "plant_name": plant.name,
        "current_phase_id": summary.current_phase_id,
        "current_phase_name": summary.current_phase_name,
        "days_in_phase": current.days_elapsed if current else None,
        "total_progress": round(summary.total_progress, 1),
        "days_until_next_phase": summary.days_until_next_phase,
        "days_until_harvest": summary.days_until_harvest,
        "can_advance_to_next_phase": summary.can_advance_to_next_phase,
        "is_overdue": summary.is_overdue,
        "timestamp": timeline.now.isoformat(),
    }


def ha_entity_states(state: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    """Map a phase state onto Home Assistant sensor entities."""
    base = f"sensor.{config.HA_ENTITY_PREFIX}_plant_{state['plant_id']}"
    name = state["plant_name"]
    return {
        f"{base}_phase": {
            "state": state["current_phase_name"] or "Not started",
            "attributes": {
                "friendly_name": f"{name} Phase",
                "phase_id": state["current_phase_id"],
                "is_overdue": state["is_overdue"],
                "can_advance": state["can_advance_to_next_phase"],
                "icon": "mdi:sprout",
            },
        },
        f"{base}_days_in_phase": {
            "state": state["days_in_phase"] if state["days_in_phase"] is not None else "unknown",
            "attributes": {"friendly_name": f"{name} Days In Phase", "unit_of_measurement": "d"},
        },
        f"{base}_progress": {
            "state": state["total_progress"],
            "attributes": {"friendly_name": f"{name} Progress", "unit_of_measurement": "%"},
        },
        f"{base}_days_until_harvest": {
            "state": state["days_until_harvest"] if state["days_until_harvest"] is not None else "unknown",
            "attributes": {"friendly_name": f"{name} Days Until Harvest", "unit_of_measurement": "d"},
        },
    }


async def push_to_websockets(plant_id: int, state: Dict[str, Any]) -> int:
    """Send state to every subscriber of the plant; drop dead connections."""
    sent = 0
    for ws in list(plant_connections.get(plant_id, [])):
        try:
            await ws.send_json(state)
            sent += 1
        except Exception as e:
            print(f"[NOTIFY] Dropping websocket for plant {plant_id}: {e}")
            if ws in plant_connections[plant_id]:
                plant_connections[plant_id].remove(ws)
    return sent


async def push_to_home_assistant(state: Dict[str, Any]) -> int:
    """Write each sensor entity via the HA REST API; returns how many succeeded."""
    if not config.HOME_ASSISTANT_ENABLED:
        return 0

    headers = {
        "Authorization": f"Bearer {config.HOME_ASSISTANT_TOKEN}",
        "Content-Type": "application/json",
    }
    written = 0
    async with httpx.AsyncClient(
        base_url=config.HOME_ASSISTANT_URL,
        headers=headers,
        timeout=config.HOME_ASSISTANT_TIMEOUT
    ) as client:
        for entity_id, payload in ha_entity_states(state).items():
            try:
                response = await client.post(f"/api/states/{entity_id}", json=payload)
                response.raise_for_status()
                written += 1
            except httpx.HTTPError as e:
                print(f"[NOTIFY] Home Assistant update failed for {entity_id}: {e}")
    return written


async def publish_plant_state(plant, now: Optional[datetime] = None) -> Optional[Dict[str, Any]]:
    """
    Publish a plant's derived phase state to all sinks.

    Never raises. Returns the computed state, or None when the stored phases
    or events could not be turned into a state.
    """
    try:
        state = build_phase_state(plant, now or utcnow())
    except Exception as e:
        print(f"[NOTIFY] Could not build phase state for plant {plant.id}: {e}")
        return None
    sent = await push_to_websockets(plant.id, state)
    written = await push_to_home_assistant(state)
    if config.DEBUG:
        print(f"[NOTIFY] Plant {plant.id}: phase={state['current_phase_name']} "
              f"websockets={sent} ha_entities={written}")
    return state
