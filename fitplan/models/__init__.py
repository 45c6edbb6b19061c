"""Domain models."""
from fitplan.models.enums import (
    BlockType,
    FailureReason,
    FitActionType,
    FitStatus,
    InfeasibleReason,
    JobStatus,
    LoadType,
    Priority,
    ViolationCode,
)
from fitplan.models.job import GenerationJob
from fitplan.models.program import (
    Block,
    Blueprint,
    DurationRange,
    ExerciseCaps,
    ExerciseRef,
    FocusDistribution,
    PrescribedExercise,
    ScheduleConstraints,
    Session,
    TimeModel,
)

__all__ = [
    "Block",
    "BlockType",
    "Blueprint",
    "DurationRange",
    "ExerciseCaps",
    "ExerciseRef",
    "FailureReason",
    "FitActionType",
    "FitStatus",
    "FocusDistribution",
    "GenerationJob",
    "InfeasibleReason",
    "JobStatus",
    "LoadType",
    "PrescribedExercise",
    "Priority",
    "ScheduleConstraints",
    "Session",
    "TimeModel",
    "ViolationCode",
]
