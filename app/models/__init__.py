# app/models/__init__.py
"""
SQLAlchemy models for the grow tracking server.
"""
from .base import Base
from .strain import Strain
from .plant import Plant

__all__ = [
    "Base",
    "Strain",
    "Plant",
]
