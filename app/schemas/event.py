# app/schemas/event.py
"""
Care event Pydantic schemas.
"""
from typing import Optional, List, Dict, Any, Literal
from datetime import datetime
from uuid import uuid4
from pydantic import BaseModel, Field, field_validator

from app.utils.dates import parse_datetime, utcnow

EventType = Literal["watering", "feeding", "observation", "training", "harvest", "transplant", "custom"]


class Nutrient(BaseModel):
    name: str
    amount_ml: float
    npk_ratio: Optional[str] = None  # e.g. '3-1-2'


class EventData(BaseModel):
    # Watering
    amount_ml: Optional[float] = None
    ph_level: Optional[float] = None
    ec_ppm: Optional[float] = None
    water_temperature: Optional[float] = None
    runoff_ph: Optional[float] = None
    runoff_ec: Optional[float] = None
    # Feeding
    nutrients: Optional[List[Nutrient]] = None
    # Observation
    observation_type: Optional[Literal["health", "training", "deficiency", "pest", "general"]] = None
    severity: Optional[Literal["low", "medium", "high"]] = None
    resolved: Optional[bool] = None
    # Training
    training_method: Optional[str] = None
    # Harvest
    wet_weight: Optional[float] = None
    dry_weight: Optional[float] = None
    # Any event type
    photos: Optional[List[str]] = None
    custom_fields: Optional[Dict[str, Any]] = None


class PlantEvent(BaseModel):
    """Entry in a plant's flat event log; phase_id is a weak back-reference."""
    id: str = Field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = Field(default_factory=utcnow)
    type: EventType
    title: str
    description: Optional[str] = None
    data: Optional[EventData] = None
    notes: Optional[str] = None
    phase_id: Optional[str] = None

    @field_validator("timestamp", mode="before")
    @classmethod
    def parse_timestamp(cls, v):
        parsed = parse_datetime(v)
        return parsed if parsed is not None else utcnow()


class EventCreate(BaseModel):
    type: EventType
    title: str
    description: Optional[str] = None
    data: Optional[EventData] = None
    notes: Optional[str] = None
    timestamp: Optional[str] = None  # ISO format, defaults to now


class EventUpdate(BaseModel):
    type: Optional[EventType] = None
    title: Optional[str] = None
    description: Optional[str] = None
    data: Optional[EventData] = None
    notes: Optional[str] = None
    timestamp: Optional[str] = None
    phase_id: Optional[str] = None


class EventStats(BaseModel):
    total: int
    by_type: Dict[str, int]
    this_week: int
    this_month: int
    by_type_this_week: Dict[str, int]
    by_type_this_month: Dict[str, int]


class DaysSinceEvent(BaseModel):
    type: EventType
    phase_id: Optional[str] = None
    days: Optional[int]  # None when no such event was logged
