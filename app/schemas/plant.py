# app/schemas/plant.py
"""
Plant-related Pydantic schemas.
"""
from typing import Optional, List, Literal
from datetime import datetime
from pydantic import BaseModel, Field

from .phase import PhaseInstance, PhaseImport
from .event import PlantEvent


class LightSchedule(BaseModel):
    vegetation: str = "18/6"
    flowering: str = "12/12"


class PlantCreate(BaseModel):
    name: str = Field(min_length=1)
    strain: Optional[str] = None  # Strain name, used to look up phase templates
    strain_id: Optional[int] = None
    plant_type: Optional[Literal["photoperiod", "autoflower"]] = None
    breeder: Optional[str] = None
    phenotype: Optional[str] = None
    medium: Literal["soil", "hydro", "coco", "dwc"] = "soil"
    pot_size_liters: float = Field(default=11.0, gt=0)
    training_methods: List[str] = []
    light_schedule: Optional[LightSchedule] = None
    notes: Optional[str] = None
    is_mother_plant: bool = False
    # Explicit phases override strain templates and the built-in defaults
    phases: Optional[List[PhaseImport]] = Field(default=None, min_length=1)


class PlantUpdate(BaseModel):
    """Metadata only; phases and events have their own endpoints"""
    name: Optional[str] = Field(default=None, min_length=1)
    strain: Optional[str] = None
    breeder: Optional[str] = None
    phenotype: Optional[str] = None
    medium: Optional[Literal["soil", "hydro", "coco", "dwc"]] = None
    pot_size_liters: Optional[float] = Field(default=None, gt=0)
    training_methods: Optional[List[str]] = None
    light_schedule: Optional[LightSchedule] = None
    notes: Optional[str] = None
    is_active: Optional[bool] = None
    is_mother_plant: Optional[bool] = None


class PlantRead(BaseModel):
    id: int
    name: str
    strain: Optional[str]
    strain_id: Optional[int]
    breeder: Optional[str]
    phenotype: Optional[str]
    medium: str
    pot_size_liters: float
    training_methods: List[str]
    light_schedule: LightSchedule
    notes: Optional[str]
    is_active: bool
    is_mother_plant: bool
    phases: List[PhaseInstance]
    events: List[PlantEvent]
    # Computed from phases on read, never stored
    current_phase_id: Optional[str]
    current_phase_name: Optional[str]
    version: int
    created_at: datetime
    updated_at: Optional[datetime]
