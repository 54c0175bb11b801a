"""API v1 REST routes (GraphQL is mounted separately)."""

from fastapi import APIRouter

from jobflow.api.v1 import health

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
