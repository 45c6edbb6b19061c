"""Generation job record owned by the JobManager."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from fitplan.models.enums import FailureReason, JobStatus


@dataclass(frozen=True)
class GenerationJob:
    """Snapshot of a long-running generation request.

    Instances are immutable; the JobManager replaces the stored snapshot on
    every accepted update, so callers never observe a half-applied merge.
    """

    id: str
    user_id: str
    status: JobStatus = JobStatus.QUEUED
    progress: int = 0
    result: dict[str, Any] | None = None
    error: str | None = None
    reason: FailureReason | None = None
    details: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return not self.status.is_terminal

    @property
    def was_cancelled(self) -> bool:
        return self.status == JobStatus.FAILED and self.reason == FailureReason.USER_CANCELLED
