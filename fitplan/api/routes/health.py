"""Health check endpoints for monitoring system status."""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request

from fitplan.api.routes.dependencies import get_job_manager
from fitplan.config.settings import get_settings
from fitplan.services.job_manager import JobManager

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health_check(jobs: JobManager = Depends(get_job_manager)):
    """Liveness plus the size of the in-memory job store."""
    return {
        "status": "healthy",
        "app": get_settings().app_name,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "jobs": len(jobs),
    }


@router.get("/llm")
async def llm_health_check(request: Request):
    """Check LLM provider availability in priority order."""
    provider = request.app.state.llm
    if hasattr(provider, "provider_health"):
        providers = await provider.provider_health()
        is_healthy = any(providers.values())
    else:
        is_healthy = await provider.health_check()
        providers = {provider.name: is_healthy}

    return {
        "status": "healthy" if is_healthy else "unhealthy",
        "providers": providers,
        "priority": get_settings().provider_priority,
    }
