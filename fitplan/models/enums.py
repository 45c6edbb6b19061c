"""Enumerations shared by the planning domain and the job store."""
from enum import Enum, IntEnum


class BlockType(str, Enum):
    WARMUP = "warmup"
    MAIN = "main"
    ACCESSORY = "accessory"
    CARDIO = "cardio"
    COOLDOWN = "cooldown"


# Blocks timed as a flat allowance rather than per exercise
ALLOWANCE_BLOCK_TYPES = frozenset({BlockType.WARMUP, BlockType.COOLDOWN})

# Blocks where timed work is repeated per set
SET_BASED_BLOCK_TYPES = frozenset({BlockType.MAIN, BlockType.ACCESSORY})


class LoadType(str, Enum):
    PERCENTAGE_1RM = "percentage_1rm"
    RPE = "rpe"
    BODYWEIGHT = "bodyweight"
    FIXED = "fixed"


class Priority(IntEnum):
    """Protection tier used by the duration fitter."""

    PROTECT = 1
    ADJUSTABLE = 2
    REMOVE_FIRST = 3


class JobStatus(str, Enum):
    QUEUED = "queued"
    GENERATING = "generating"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class FailureReason(str, Enum):
    """Machine-readable reason attached to a failed job."""

    USER_CANCELLED = "UserCancelled"
    FORMAT_ERROR = "FormatError"
    BLUEPRINT_REJECTED = "BlueprintRejected"
    INVALID_FOCUS_SUM = "InvalidFocusSum"
    CANNOT_SHRINK_BELOW_MAX = "CannotShrinkBelowMax"
    CANNOT_GROW_TO_MIN = "CannotGrowToMin"
    FITTER_DID_NOT_CONVERGE = "FitterDidNotConverge"
    LLM_UNAVAILABLE = "LLMUnavailable"
    INTERNAL_ERROR = "InternalError"


class InfeasibleReason(str, Enum):
    CANNOT_SHRINK_BELOW_MAX = "CannotShrinkBelowMax"
    CANNOT_GROW_TO_MIN = "CannotGrowToMin"
    FITTER_DID_NOT_CONVERGE = "FitterDidNotConverge"


class ViolationCode(str, Enum):
    UNKNOWN_EXERCISE_ID = "UnknownExerciseId"
    INCOMPLETE_METADATA = "IncompleteMetadata"
    INVALID_LOAD = "InvalidLoad"
    INVALID_FOCUS_SUM = "InvalidFocusSum"
    MALFORMED_REPS = "MalformedReps"
    INVALID_STRUCTURE = "InvalidStructure"
    INVALID_SCHEDULE = "InvalidSchedule"


class FitStatus(str, Enum):
    UNCHANGED = "unchanged"
    FITTED = "fitted"
    INFEASIBLE = "infeasible"


class FitActionType(str, Enum):
    REDUCE_SETS = "reduce_sets"
    REMOVE_EXERCISE = "remove_exercise"
    ADD_SETS = "add_sets"
    EXTEND_WARMUP = "extend_warmup"
    EXTEND_COOLDOWN = "extend_cooldown"
