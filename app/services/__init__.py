# app/services/__init__.py
"""
Business logic services.
"""
from .phases import (
    PhaseError,
    DeleteRejected,
    InvalidPhaseOrder,
    InvalidPhaseDuration,
    PhaseNotFound,
    PHOTOPERIOD_PHASES,
    AUTOFLOWER_PHASES,
    create_plant_phases,
    find_current_phase_index,
    refresh_phase_flags,
)
from .events import EVENT_TYPES, QUICK_EVENT_TEMPLATES, create_event, add_event_to_plant
from .timeline import PlantTimeline, create_plant_timeline
from .notifications import publish_plant_state

__all__ = [
    "PhaseError",
    "DeleteRejected",
    "InvalidPhaseOrder",
    "InvalidPhaseDuration",
    "PhaseNotFound",
    "PHOTOPERIOD_PHASES",
    "AUTOFLOWER_PHASES",
    "create_plant_phases",
    "find_current_phase_index",
    "refresh_phase_flags",
    "EVENT_TYPES",
    "QUICK_EVENT_TEMPLATES",
    "create_event",
    "add_event_to_plant",
    "PlantTimeline",
    "create_plant_timeline",
    "publish_plant_state",
]
