# app/routers/__init__.py
"""
API route handlers organized by domain.
"""
from .plants import router as plants_router
from .phases import router as phases_router
from .events import router as events_router, types_router as event_types_router
from .strains import router as strains_router
from .websocket import router as websocket_router

__all__ = [
    "plants_router",
    "phases_router",
    "events_router",
    "event_types_router",
    "strains_router",
    "websocket_router",
]
