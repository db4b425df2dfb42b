"""API route package for the FastAPI application."""

from .internal import internal_router
from .risk import risk_router
from .reports import reports_router
from .emergency import emergency_router

__all__ = ["internal_router", "risk_router", "reports_router", "emergency_router"]
