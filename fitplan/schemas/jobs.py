"""Request and response models for the generation job API."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from fitplan.config.settings import Settings
from fitplan.models.enums import FailureReason, JobStatus
from fitplan.models.job import GenerationJob
from fitplan.models.program import ScheduleConstraints, TimeModel

# Used when the caller gives a session count but no days
DEFAULT_WEEKDAYS: dict[int, list[str]] = {
    1: ["Monday"],
    2: ["Monday", "Thursday"],
    3: ["Monday", "Wednesday", "Friday"],
    4: ["Monday", "Tuesday", "Thursday", "Friday"],
    5: ["Monday", "Tuesday", "Wednesday", "Friday", "Saturday"],
    6: ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"],
    7: ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"],
}


class UserProfileRequest(BaseModel):
    age: int | None = Field(None, ge=10, le=100)
    sex: str | None = None
    weight_kg: float | None = Field(None, gt=0)
    height_cm: float | None = Field(None, gt=0)
    training_level: str | None = None
    primary_goal: str = Field(..., min_length=1)
    sport: str | None = None


class ScheduleRequest(BaseModel):
    sessions_per_week: int = Field(3, ge=1, le=7)
    target_minutes: int | None = Field(None, gt=0)
    allowed_min_minutes: int | None = Field(None, ge=0)
    allowed_max_minutes: int | None = Field(None, gt=0)
    weekdays: list[str] | None = None

    def to_domain(self, settings: Settings) -> ScheduleConstraints:
        """Fill gaps from settings; the allowed window defaults to target +/- slack.

        Raises:
            ValidationError: If the resulting constraints are inconsistent.
        """
        target = self.target_minutes or settings.default_target_minutes
        slack = settings.allowed_duration_slack_minutes
        low = self.allowed_min_minutes if self.allowed_min_minutes is not None else max(0, target - slack)
        high = self.allowed_max_minutes if self.allowed_max_minutes is not None else target + slack
        weekdays = self.weekdays or DEFAULT_WEEKDAYS[self.sessions_per_week]
        return ScheduleConstraints(
            sessions_per_week=self.sessions_per_week,
            target_minutes=target,
            allowed_min_minutes=low,
            allowed_max_minutes=high,
            weekdays=tuple(d.strip() for d in weekdays),
        )


class TimeModelRequest(BaseModel):
    work_seconds_per_10_reps: float | None = Field(None, gt=0)
    rest_between_sets_seconds: int | None = Field(None, ge=0)
    rest_between_exercises_seconds: int | None = Field(None, ge=0)
    warmup_minutes_default: float | None = Field(None, ge=0)
    cooldown_minutes_default: float | None = Field(None, ge=0)

    def to_domain(self, settings: Settings) -> TimeModel:
        def pick(value, default):
            return default if value is None else value

        return TimeModel(
            work_seconds_per_10_reps=pick(
                self.work_seconds_per_10_reps, settings.default_work_seconds_per_10_reps
            ),
            rest_between_sets_seconds=pick(
                self.rest_between_sets_seconds, settings.default_rest_between_sets_seconds
            ),
            rest_between_exercises_seconds=pick(
                self.rest_between_exercises_seconds, settings.default_rest_between_exercises_seconds
            ),
            warmup_minutes_default=pick(self.warmup_minutes_default, settings.default_warmup_minutes),
            cooldown_minutes_default=pick(
                self.cooldown_minutes_default, settings.default_cooldown_minutes
            ),
        )


class GenerateProgramRequest(BaseModel):
    user: UserProfileRequest
    schedule: ScheduleRequest = Field(default_factory=ScheduleRequest)
    time_model: TimeModelRequest = Field(default_factory=TimeModelRequest)
    available_equipment: list[str] | None = None


class JobCreatedResponse(BaseModel):
    id: str
    status: JobStatus


class JobStatusResponse(BaseModel):
    id: str
    user_id: str
    status: JobStatus
    progress: int
    result: dict[str, Any] | None = None
    error: str | None = None
    reason: FailureReason | None = None
    details: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_job(cls, job: GenerationJob) -> JobStatusResponse:
        return cls(
            id=job.id,
            user_id=job.user_id,
            status=job.status,
            progress=job.progress,
            result=job.result,
            error=job.error,
            reason=job.reason,
            details=job.details,
            created_at=job.created_at,
            updated_at=job.updated_at,
        )
