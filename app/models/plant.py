# app/models/plant.py
"""
Plant model.

A plant owns its phase sequence and its event log, both stored as JSON. The
current phase is never stored: it is derived from the phase start dates
every time it is needed.
"""
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Float, Text, Boolean, JSON
from datetime import datetime
from .base import Base


class Plant(Base):
    __tablename__ = "plants"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    strain = Column(String(255), nullable=True)  # Strain name as entered
    strain_id = Column(Integer, ForeignKey("strains.id", ondelete="SET NULL"), nullable=True)
    breeder = Column(String(255), nullable=True)
    phenotype = Column(String(100), nullable=True)
    medium = Column(String(20), nullable=False, default="soil")  # 'soil', 'hydro', 'coco', 'dwc'
    pot_size_liters = Column(Float, nullable=False, default=11.0)
    training_methods = Column(JSON, nullable=False, default=list)
    light_schedule = Column(JSON, nullable=False, default=lambda: {"vegetation": "18/6", "flowering": "12/12"})
    notes = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    is_mother_plant = Column(Boolean, nullable=False, default=False)

    # Ordered list of PhaseInstance dicts
    phases = Column(JSON, nullable=False, default=list)
    # Flat list of PlantEvent dicts, newest first
    events = Column(JSON, nullable=False, default=list)

    # Bumped on every flush; a stale read-modify-write raises StaleDataError
    version = Column(Integer, nullable=False)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=True)

    __mapper_args__ = {"version_id_col": version}
