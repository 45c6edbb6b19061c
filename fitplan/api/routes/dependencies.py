"""Shared dependencies for API routes."""
from fastapi import Header, Request

from fitplan.config.settings import get_settings
from fitplan.services.generation_pipeline import GenerationPipeline
from fitplan.services.job_manager import JobManager


async def get_current_user_id(
    x_user_id: str | None = Header(None, alias="X-User-Id"),
) -> str:
    """Caller identity.

    There is no authentication; the X-User-Id header names the user and the
    configured default_user_id is used when it is absent.
    """
    if x_user_id and x_user_id.strip():
        return x_user_id.strip()
    return get_settings().default_user_id


def get_job_manager(request: Request) -> JobManager:
    """Job store created by the application lifespan."""
    return request.app.state.job_manager


def get_pipeline(request: Request) -> GenerationPipeline:
    return request.app.state.pipeline
