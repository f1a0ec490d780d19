"""Routers package for the FurnaceLog API."""

from .homes import router as homes_router
from .maintenance import router as maintenance_router
from .schedule import router as schedule_router
from .timeline import router as timeline_router
from .weather import router as weather_router

__all__ = ["homes_router", "maintenance_router", "schedule_router", "timeline_router", "weather_router"]
