"""
API v1 Router - Main Entry Point
Aggregates all v1 API endpoints of the maintenance engine
"""

from fastapi import APIRouter

from komuniteti.api.v1 import maintenance

# Create main API v1 router with proper configuration
router = APIRouter(
    responses={
        404: {"description": "Not Found"},
        409: {"description": "Conflict"},
        422: {"description": "Validation Error"},
        503: {"description": "Service Unavailable"},
    }
)

router.include_router(maintenance.router)
