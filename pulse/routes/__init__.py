"""API routes."""

from fastapi import APIRouter

from pulse.routes import analytics, numbers

api_router = APIRouter()

# Number window endpoints
api_router.include_router(numbers.router, prefix="/numbers", tags=["numbers"])

# Social analytics endpoints (/users, /posts)
api_router.include_router(analytics.router, tags=["analytics"])
