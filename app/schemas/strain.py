# app/schemas/strain.py
"""
Strain Pydantic schemas.
"""
from typing import Optional, List, Literal
from datetime import datetime
from pydantic import BaseModel, Field, model_validator

from .phase import PhaseTemplate


class StrainCreate(BaseModel):
    name: str = Field(min_length=1)
    type: Literal["indica", "sativa", "hybrid", "autoflowering"] = "hybrid"
    is_autoflower: bool = False
    flowering_time_min: int = Field(gt=0)  # days
    flowering_time_max: int = Field(gt=0)  # days
    description: Optional[str] = None
    breeder: Optional[str] = None
    thc_content: Optional[float] = Field(default=None, ge=0, le=100)
    cbd_content: Optional[float] = Field(default=None, ge=0, le=100)
    # Empty list means "use the built-in defaults"
    phase_templates: List[PhaseTemplate] = []

    @model_validator(mode="after")
    def check_flowering_range(self):
        if self.flowering_time_min > self.flowering_time_max:
            raise ValueError("flowering_time_min cannot be greater than flowering_time_max")
        return self


class StrainRead(BaseModel):
    id: int
    name: str
    type: str
    is_autoflower: bool
    flowering_time_min: int
    flowering_time_max: int
    description: Optional[str]
    breeder: Optional[str]
    thc_content: Optional[float]
    cbd_content: Optional[float]
    phase_templates: List[PhaseTemplate]
    created_at: datetime
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True
