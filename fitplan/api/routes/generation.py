"""API routes for program generation jobs."""
from fastapi import APIRouter, BackgroundTasks, Depends, status

from fitplan.api.routes.dependencies import get_current_user_id, get_job_manager, get_pipeline
from fitplan.config.settings import get_settings
from fitplan.core.exceptions import ConflictError, NotFoundError
from fitplan.core.logging import get_logger
from fitplan.models.job import GenerationJob
from fitplan.schemas.jobs import GenerateProgramRequest, JobCreatedResponse, JobStatusResponse
from fitplan.services.generation_pipeline import GenerationPipeline
from fitplan.services.job_manager import JobManager

router = APIRouter()
logger = get_logger(__name__)


def _owned_job(jobs: JobManager, job_id: str, user_id: str) -> GenerationJob:
    job = jobs.get_job(job_id)
    if job is None or job.user_id != user_id:
        raise NotFoundError("GenerationJob", f"Generation job {job_id} not found")
    return job


@router.post(
    "/programs/generate",
    response_model=JobCreatedResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def generate_program(
    body: GenerateProgramRequest,
    background_tasks: BackgroundTasks,
    user_id: str = Depends(get_current_user_id),
    jobs: JobManager = Depends(get_job_manager),
    pipeline: GenerationPipeline = Depends(get_pipeline),
):
    """
    Start asynchronous program generation.

    Only one active job per user: a second request while one is queued or
    generating is rejected with 409. Poll the returned id for progress.
    """
    settings = get_settings()
    # Reject inconsistent schedule/time model input before a job exists
    body.schedule.to_domain(settings)
    body.time_model.to_domain(settings)

    active = jobs.get_user_active_job(user_id)
    if active is not None:
        raise ConflictError(
            "A program generation is already in progress",
            code="JOB_ACTIVE",
            details={"job_id": active.id},
        )

    job = jobs.create_job(user_id)
    background_tasks.add_task(pipeline.run, job.id, body)
    logger.info("generation_job_scheduled", job_id=job.id, user_id=user_id)
    return JobCreatedResponse(id=job.id, status=job.status)


@router.get("/generation-jobs/active", response_model=JobStatusResponse)
async def get_active_job(
    user_id: str = Depends(get_current_user_id),
    jobs: JobManager = Depends(get_job_manager),
):
    """The caller's queued or generating job."""
    job = jobs.get_user_active_job(user_id)
    if job is None:
        raise NotFoundError("GenerationJob", "No active generation job")
    return JobStatusResponse.from_job(job)


@router.get("/generation-jobs/{job_id}", response_model=JobStatusResponse)
async def get_job_status(
    job_id: str,
    user_id: str = Depends(get_current_user_id),
    jobs: JobManager = Depends(get_job_manager),
):
    return JobStatusResponse.from_job(_owned_job(jobs, job_id, user_id))


@router.post("/generation-jobs/{job_id}/cancel", response_model=JobStatusResponse)
async def cancel_job(
    job_id: str,
    user_id: str = Depends(get_current_user_id),
    jobs: JobManager = Depends(get_job_manager),
):
    """
    Cancel a running job.

    The job turns failed/UserCancelled immediately; the pipeline stops at its
    next stage boundary. Cancelling a finished job is a 409.
    """
    _owned_job(jobs, job_id, user_id)
    return JobStatusResponse.from_job(jobs.cancel_job(job_id))
