"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from backend.app.api.v1.endpoints import account, auth, cycles, dashboard, fleet

router = APIRouter()

router.include_router(auth.router)
router.include_router(cycles.router)
router.include_router(fleet.router)
router.include_router(account.router)
router.include_router(dashboard.router)
