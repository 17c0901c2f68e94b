"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from pricing_backend.app.api.v1.endpoints import pricing

router = APIRouter()

# Price resolution and client price management
router.include_router(pricing.router)
