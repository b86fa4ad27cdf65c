# app/schemas/__init__.py
"""
Pydantic schemas for request/response validation.
"""
from .phase import (
    AutomationSettings,
    PhaseTemplate,
    PhaseInstance,
    PhaseImport,
    PhaseStartDateUpdate,
    PhaseDetailsUpdate,
    PhaseInsert,
    PhaseReorder,
    PhaseMove,
    ValidationResult,
    PhaseDateRange,
    PhaseInfo,
    TimelineSummary,
    TimelineRead,
)
from .event import (
    EventType,
    Nutrient,
    EventData,
    PlantEvent,
    EventCreate,
    EventUpdate,
    EventStats,
    DaysSinceEvent,
)
from .plant import LightSchedule, PlantCreate, PlantUpdate, PlantRead
from .strain import StrainCreate, StrainRead

__all__ = [
    "AutomationSettings",
    "PhaseTemplate",
    "PhaseInstance",
    "PhaseImport",
    "PhaseStartDateUpdate",
    "PhaseDetailsUpdate",
    "PhaseInsert",
    "PhaseReorder",
    "PhaseMove",
    "ValidationResult",
    "PhaseDateRange",
    "PhaseInfo",
    "TimelineSummary",
    "TimelineRead",
    "EventType",
    "Nutrient",
    "EventData",
    "PlantEvent",
    "EventCreate",
    "EventUpdate",
    "EventStats",
    "DaysSinceEvent",
    "LightSchedule",
    "PlantCreate",
    "PlantUpdate",
    "PlantRead",
    "StrainCreate",
    "StrainRead",
]
