"""
Generation Job Manager

In-memory store for generation jobs, owned by the application and created in
the lifespan handler. Jobs are ephemeral: they are lost on restart and
garbage-collected after a maximum age regardless of status.

Every accepted change replaces the stored GenerationJob snapshot under a
lock. Status changes go through an explicit transition table:

    queued -> generating -> completed | failed
    queued -> failed                (cancelled before start)

Terminal jobs reject every further update.
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from fitplan.config.settings import get_settings
from fitplan.core.exceptions import InvalidJobTransitionError, NotFoundError, ValidationError
from fitplan.core.logging import get_logger
from fitplan.core.metrics import generation_jobs_total
from fitplan.models.enums import FailureReason, JobStatus
from fitplan.models.job import GenerationJob

logger = get_logger(__name__)

ALLOWED_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.QUEUED: frozenset({JobStatus.QUEUED, JobStatus.GENERATING, JobStatus.FAILED}),
    JobStatus.GENERATING: frozenset({JobStatus.GENERATING, JobStatus.COMPLETED, JobStatus.FAILED}),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.FAILED: frozenset(),
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_job_id(now: datetime) -> str:
    return f"job-{int(now.timestamp() * 1000)}-{uuid.uuid4().hex[:9]}"


class JobManager:
    """Thread-safe store of GenerationJob snapshots.

    The one-active-job-per-user policy is the caller's to enforce through
    get_user_active_job; the store itself accepts several jobs per user.

    Example:
        >>> manager = JobManager()
        >>> job = manager.create_job("user-1")
        >>> manager.update_job(job.id, status=JobStatus.GENERATING, progress=5).status
        <JobStatus.GENERATING: 'generating'>
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        self._jobs: dict[str, GenerationJob] = {}
        self._lock = threading.RLock()
        self._clock = clock

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)

    def create_job(self, user_id: str) -> GenerationJob:
        now = self._clock()
        with self._lock:
            job_id = _new_job_id(now)
            while job_id in self._jobs:
                job_id = _new_job_id(now)
            job = GenerationJob(id=job_id, user_id=user_id, created_at=now, updated_at=now)
            self._jobs[job_id] = job

        generation_jobs_total.labels(status=JobStatus.QUEUED.value).inc()
        logger.info("generation_job_created", job_id=job_id, user_id=user_id)
        return job

    def get_job(self, job_id: str) -> GenerationJob | None:
        with self._lock:
            return self._jobs.get(job_id)

    def get_user_active_job(self, user_id: str) -> GenerationJob | None:
        """First non-terminal job of ``user_id`` in creation order, if any."""
        with self._lock:
            for job in self._jobs.values():
                if job.user_id == user_id and job.is_active:
                    return job
        return None

    def list_user_jobs(self, user_id: str) -> list[GenerationJob]:
        with self._lock:
            return [job for job in self._jobs.values() if job.user_id == user_id]

    def update_job(
        self,
        job_id: str,
        status: JobStatus | None = None,
        progress: int | None = None,
        result: dict[str, Any] | None = None,
        error: str | None = None,
        reason: FailureReason | None = None,
        details: dict[str, Any] | None = None,
    ) -> GenerationJob:
        """Apply a partial update and return the new snapshot.

        Progress never decreases and is clamped to [0, 100]; a completed job
        is always at 100. ``result`` is only accepted together with
        ``completed``, ``error``/``reason`` only with ``failed``.

        Raises:
            NotFoundError: Unknown job id.
            InvalidJobTransitionError: Job is terminal or the status change is not allowed.
            ValidationError: Result or error supplied with the wrong status.
        """
        with self._lock:
            current = self._jobs.get(job_id)
            if current is None:
                raise NotFoundError("GenerationJob", f"Generation job {job_id} not found")

            new_status = status or current.status
            if new_status not in ALLOWED_TRANSITIONS[current.status]:
                raise InvalidJobTransitionError(job_id, current.status.value, new_status.value)

            if result is not None and new_status != JobStatus.COMPLETED:
                raise ValidationError("result", "result can only be set when completing a job")
            if (error is not None or reason is not None) and new_status != JobStatus.FAILED:
                raise ValidationError("error", "error can only be set when failing a job")

            changes: dict[str, Any] = {"status": new_status, "updated_at": self._clock()}

            if progress is not None:
                changes["progress"] = max(current.progress, min(100, max(0, int(progress))))
            if new_status == JobStatus.COMPLETED:
                changes["progress"] = 100
                changes["result"] = result
            if new_status == JobStatus.FAILED:
                failure = reason or FailureReason.INTERNAL_ERROR
                changes["reason"] = failure
                changes["error"] = error or failure.value
            if details:
                changes["details"] = {**current.details, **details}

            updated = replace(current, **changes)
            self._jobs[job_id] = updated

        if new_status != current.status:
            logger.info(
                "generation_job_transition",
                job_id=job_id,
                from_status=current.status.value,
                to_status=new_status.value,
                progress=updated.progress,
                reason=updated.reason.value if updated.reason else None,
            )
            if new_status.is_terminal:
                generation_jobs_total.labels(status=new_status.value).inc()
        return updated

    def cancel_job(self, job_id: str) -> GenerationJob:
        """Cooperatively cancel: the job becomes failed/UserCancelled.

        The running pipeline notices at its next stage boundary.
        """
        job = self.update_job(
            job_id,
            status=JobStatus.FAILED,
            error=FailureReason.USER_CANCELLED.value,
            reason=FailureReason.USER_CANCELLED,
        )
        logger.info("generation_job_cancelled", job_id=job_id, user_id=job.user_id)
        return job

    def is_cancelled(self, job_id: str) -> bool:
        job = self.get_job(job_id)
        return job is not None and job.was_cancelled

    def cleanup_old_jobs(self, max_age_ms: int | None = None) -> int:
        """Delete every job created more than ``max_age_ms`` ago, whatever its status.

        Returns:
            Number of jobs removed.
        """
        if max_age_ms is None:
            max_age_ms = get_settings().job_max_age_ms
        cutoff = self._clock() - timedelta(milliseconds=max_age_ms)

        with self._lock:
            expired = [job_id for job_id, job in self._jobs.items() if job.created_at < cutoff]
            for job_id in expired:
                del self._jobs[job_id]

        if expired:
            logger.info("generation_jobs_cleaned", removed=len(expired), max_age_ms=max_age_ms)
        return len(expired)
