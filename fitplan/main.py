"""Main FastAPI application."""
import asyncio
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from fitplan.api.routes import generation_router, health_router, metrics_router
from fitplan.config.settings import Settings, get_settings
from fitplan.core.error_handlers import domain_error_handler, request_validation_handler
from fitplan.core.exceptions import DomainError
from fitplan.core.logging import configure_logging, get_logger
from fitplan.llm import cleanup_llm_provider, get_llm_provider
from fitplan.services.candidate_pool import CandidatePools
from fitplan.services.generation_pipeline import GenerationPipeline
from fitplan.services.job_manager import JobManager

logger = get_logger(__name__)


def load_candidate_pools(settings: Settings) -> CandidatePools:
    """Pools from ``candidate_pool_path``; empty when none is configured."""
    if not settings.candidate_pool_path:
        logger.warning("candidate_pool_not_configured")
        return CandidatePools({})
    pools = CandidatePools.from_file(settings.candidate_pool_path)
    logger.info(
        "candidate_pool_loaded",
        path=settings.candidate_pool_path,
        buckets=len(pools.buckets),
        exercises=len(pools),
        pool_hash=pools.pool_hash,
    )
    return pools


async def cleanup_jobs_periodically(jobs: JobManager, settings: Settings) -> None:
    while True:
        await asyncio.sleep(settings.job_cleanup_interval_seconds)
        jobs.cleanup_old_jobs(settings.job_max_age_ms)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    settings = get_settings()
    configure_logging()

    # Startup: the job store lives exactly as long as the app
    app.state.job_manager = JobManager()
    app.state.pools = load_candidate_pools(settings)
    app.state.llm = get_llm_provider()
    app.state.pipeline = GenerationPipeline(
        app.state.llm,
        app.state.job_manager,
        app.state.pools,
        settings,
    )
    cleanup_task = asyncio.create_task(
        cleanup_jobs_periodically(app.state.job_manager, settings)
    )
    logger.info("application_started", providers=settings.provider_priority)

    yield

    # Shutdown: stop the cleanup loop, then release HTTP clients
    cleanup_task.cancel()
    with suppress(asyncio.CancelledError):
        await cleanup_task
    await cleanup_llm_provider()
    logger.info("application_stopped", jobs_dropped=len(app.state.job_manager))


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Generates duration-fitted strength and conditioning programs",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    app.include_router(generation_router, prefix="/api", tags=["Generation"])
    app.include_router(health_router)
    app.include_router(metrics_router, tags=["Metrics"])

    return app


app = create_app()
