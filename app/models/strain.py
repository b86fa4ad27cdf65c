# app/models/strain.py
"""
Strain model: supplies phase templates for new plants.
"""
from sqlalchemy import Column, Integer, String, DateTime, Float, Text, Boolean, JSON
from datetime import datetime
from .base import Base


class Strain(Base):
    __tablename__ = "strains"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False)
    type = Column(String(20), nullable=False, default="hybrid")  # 'indica', 'sativa', 'hybrid', 'autoflowering'
    is_autoflower = Column(Boolean, nullable=False, default=False)
    flowering_time_min = Column(Integer, nullable=False)  # days
    flowering_time_max = Column(Integer, nullable=False)  # days
    description = Column(Text, nullable=True)
    breeder = Column(String(255), nullable=True)
    thc_content = Column(Float, nullable=True)
    cbd_content = Column(Float, nullable=True)
    # Ordered list of PhaseTemplate dicts; empty means built-in defaults
    phase_templates = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=True)
