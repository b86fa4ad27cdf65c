# app/schemas/phase.py
"""
Phase-related Pydantic schemas.

PhaseTemplate and PhaseInstance are also the value types the timeline engine
works on; plants persist their phase list as PhaseInstance JSON.
"""
from typing import Optional, List
from datetime import datetime
from uuid import uuid4
from pydantic import BaseModel, Field, field_validator, model_validator

from app.utils.dates import parse_datetime


class AutomationSettings(BaseModel):
    light_schedule: Optional[str] = None  # e.g. '18/6'
    vpd_target: Optional[float] = None  # kPa


class PhaseTemplate(BaseModel):
    name: str = Field(min_length=1)
    duration_min: int = Field(gt=0)  # days
    duration_max: int = Field(gt=0)  # days
    description: Optional[str] = None
    counts_toward_harvest_estimate: bool = False
    automation_settings: Optional[AutomationSettings] = None

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_duration_range(self):
        if self.duration_min > self.duration_max:
            raise ValueError("duration_min cannot be greater than duration_max")
        return self


class PhaseInstance(BaseModel):
    """A plant's own copy of a phase; start_date None means not yet started."""
    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str = Field(min_length=1)
    duration_min: int = Field(gt=0)
    duration_max: int = Field(gt=0)
    description: Optional[str] = None
    start_date: Optional[datetime] = None
    # Cached flags, recomputed on every mutation
    is_active: bool = False
    is_completed: bool = False
    counts_toward_harvest_estimate: bool = False
    notes: Optional[str] = None
    automation_settings: Optional[AutomationSettings] = None

    @field_validator("start_date", mode="before")
    @classmethod
    def parse_start_date(cls, v):
        """Accept ISO strings, datetimes, or empty values (not started)"""
        return parse_datetime(v)

    @model_validator(mode="after")
    def check_duration_range(self):
        if self.duration_min > self.duration_max:
            raise ValueError("duration_min cannot be greater than duration_max")
        return self

    def to_template(self) -> PhaseTemplate:
        return PhaseTemplate(
            name=self.name,
            duration_min=self.duration_min,
            duration_max=self.duration_max,
            description=self.description,
            counts_toward_harvest_estimate=self.counts_toward_harvest_estimate,
            automation_settings=self.automation_settings,
        )


class PhaseImport(BaseModel):
    """
    Imported phase; the id and start date are optional so both template-shaped
    and instance-shaped JSON can be replayed into a plant.
    """
    id: Optional[str] = None
    name: str = Field(min_length=1)
    duration_min: int = Field(gt=0)
    duration_max: int = Field(gt=0)
    description: Optional[str] = None
    start_date: Optional[datetime] = None
    counts_toward_harvest_estimate: bool = False
    notes: Optional[str] = None
    automation_settings: Optional[AutomationSettings] = None

    @field_validator("start_date", mode="before")
    @classmethod
    def parse_start_date(cls, v):
        return parse_datetime(v)

    @model_validator(mode="after")
    def check_duration_range(self):
        if self.duration_min > self.duration_max:
            raise ValueError("duration_min cannot be greater than duration_max")
        return self


class PhaseStartDateUpdate(BaseModel):
    start_date: Optional[str] = None  # ISO format, null/empty clears the date


class PhaseDetailsUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    duration_min: Optional[int] = Field(default=None, gt=0)
    duration_max: Optional[int] = Field(default=None, gt=0)
    description: Optional[str] = None
    counts_toward_harvest_estimate: Optional[bool] = None
    notes: Optional[str] = None


class PhaseInsert(BaseModel):
    template: PhaseTemplate
    position: Optional[int] = None  # Defaults to the end of the sequence


class PhaseReorder(BaseModel):
    phase_ids: List[str]  # Complete new order, every phase id exactly once


class PhaseMove(BaseModel):
    from_index: int
    to_index: int


class ValidationResult(BaseModel):
    is_valid: bool
    error: Optional[str] = None
    code: Optional[str] = None  # 'invalid_date_range', 'delete_rejected', ...
    bound: Optional[datetime] = None  # The violated neighbouring start date


class PhaseDateRange(BaseModel):
    phase_id: str
    min_date: Optional[datetime]
    max_date: Optional[datetime]


class PhaseInfo(BaseModel):
    """Derived, per-phase view produced by the timeline engine."""
    phase: PhaseInstance
    index: int
    actual_date: Optional[datetime]
    estimated_date: datetime
    estimated_end_date: datetime
    days_elapsed: int
    is_current: bool
    is_completed: bool
    is_future: bool
    is_overdue: bool
    progress_percentage: float


class TimelineSummary(BaseModel):
    current_phase_index: int
    current_phase_id: Optional[str]
    current_phase_name: Optional[str]
    total_progress: float
    days_until_harvest: Optional[int]
    days_until_next_phase: Optional[int]
    can_advance_to_next_phase: bool
    estimated_harvest_date: Optional[datetime]
    is_overdue: bool


class TimelineRead(BaseModel):
    plant_id: int
    now: datetime
    timeline: List[PhaseInfo]
    summary: TimelineSummary
