"""API v1 routes."""

from fastapi import APIRouter

from calcflow.api.v1 import batch, graph, health

router = APIRouter()

# Include all v1 routes
router.include_router(health.router, tags=["health"])
router.include_router(graph.router, prefix="/graph", tags=["graph"])
router.include_router(batch.router, prefix="/batch", tags=["batch"])
