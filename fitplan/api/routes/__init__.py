"""API routes module."""
from fitplan.api.routes.generation import router as generation_router
from fitplan.api.routes.health import router as health_router
from fitplan.api.routes.metrics import router as metrics_router

__all__ = [
    "generation_router",
    "health_router",
    "metrics_router",
]
