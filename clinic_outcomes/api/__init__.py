"""
Clinic Outcomes API package initialization.

This package contains FastAPI router modules:
- instruments: Instrument catalog, scoring, progress, MCID summary,
  recommendations
- analytics: Leadership analytics rollup
"""

from fastapi import APIRouter

# Import router modules
from clinic_outcomes.api.instruments import router as instruments_router
from clinic_outcomes.api.analytics import router as analytics_router

# Create main API router
api_router = APIRouter()

# Both routers carry their own prefix
api_router.include_router(instruments_router)
api_router.include_router(analytics_router)

# Export all routers for selective imports
__all__ = [
    "api_router",
    "instruments_router",
    "analytics_router",
]
