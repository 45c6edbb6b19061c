"""
Program Domain Types

Plain dataclasses describing a proposed program (blueprint), the time model it
is measured against and the schedule it has to fit. These are the types the
deterministic stages (validator, fitter, scheduler) operate on; the LLM JSON
contracts in fitplan.schemas.llm convert into them.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Iterator

from fitplan.core.exceptions import ValidationError
from fitplan.models.enums import BlockType, LoadType, Priority


@dataclass(frozen=True)
class ExerciseRef:
    """Catalog entry for an exercise that may appear in a candidate pool."""

    exercise_id: str
    category: str
    required_equipment: frozenset[str] = frozenset()
    primary_muscles: frozenset[str] = frozenset()
    secondary_muscles: frozenset[str] = frozenset()
    difficulty: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExerciseRef:
        return cls(
            exercise_id=data["exercise_id"],
            category=data.get("category", ""),
            required_equipment=frozenset(data.get("required_equipment", [])),
            primary_muscles=frozenset(data.get("primary_muscles", [])),
            secondary_muscles=frozenset(data.get("secondary_muscles", [])),
            difficulty=data.get("difficulty", ""),
        )


@dataclass(frozen=True)
class TimeModel:
    """Per-request timing constants every duration derives from."""

    work_seconds_per_10_reps: float = 30
    rest_between_sets_seconds: int = 90
    rest_between_exercises_seconds: int = 120
    warmup_minutes_default: float = 8
    cooldown_minutes_default: float = 5

    def __post_init__(self):
        if self.work_seconds_per_10_reps <= 0:
            raise ValidationError("work_seconds_per_10_reps", "must be > 0")
        for name in (
            "rest_between_sets_seconds",
            "rest_between_exercises_seconds",
            "warmup_minutes_default",
            "cooldown_minutes_default",
        ):
            if getattr(self, name) < 0:
                raise ValidationError(name, "must be >= 0")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ExerciseCaps:
    """Optional per-exercise bounds on the set count the fitter may choose."""

    min_sets: int | None = None
    max_sets: int | None = None


@dataclass
class PrescribedExercise:
    exercise_id: str
    sets: int
    reps: str
    load_type: LoadType
    load_value: float
    priority: Priority
    rest_seconds: int | None = None  # between sets; None falls back to the time model
    category: str = ""
    required_equipment: list[str] = field(default_factory=list)
    primary_muscles: list[str] = field(default_factory=list)
    secondary_muscles: list[str] = field(default_factory=list)
    difficulty: str = ""
    exercise_name: str | None = None
    notes: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["load_type"] = self.load_type.value
        data["priority"] = int(self.priority)
        return data


@dataclass
class Block:
    type: BlockType
    exercises: list[PrescribedExercise] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "exercises": [e.to_dict() for e in self.exercises]}


@dataclass
class Session:
    session_index: int
    weekday: str
    name: str
    blocks: list[Block] = field(default_factory=list)
    # Extra warmup/cooldown time granted by the fitter
    warmup_extension_seconds: int = 0
    cooldown_extension_seconds: int = 0

    def has_block(self, block_type: BlockType) -> bool:
        return any(b.type == block_type for b in self.blocks)

    def iter_exercises(self) -> Iterator[tuple[int, int, Block, PrescribedExercise]]:
        """Yield (block_index, exercise_index, block, exercise) in execution order."""
        for bi, block in enumerate(self.blocks):
            for ei, exercise in enumerate(block.exercises):
                yield bi, ei, block, exercise

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_index": self.session_index,
            "weekday": self.weekday,
            "name": self.name,
            "blocks": [b.to_dict() for b in self.blocks],
            "warmup_extension_seconds": self.warmup_extension_seconds,
            "cooldown_extension_seconds": self.cooldown_extension_seconds,
        }


@dataclass(frozen=True)
class FocusDistribution:
    strength: int
    hypertrophy: int
    endurance: int
    cardio: int

    @property
    def total(self) -> int:
        return self.strength + self.hypertrophy + self.endurance + self.cardio

    @property
    def is_valid(self) -> bool:
        values = (self.strength, self.hypertrophy, self.endurance, self.cardio)
        return all(isinstance(v, int) and v >= 0 for v in values) and self.total == 100

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass(frozen=True)
class DurationRange:
    """Allowed session duration window, in seconds."""

    min_seconds: float
    max_seconds: float

    def __post_init__(self):
        if self.min_seconds < 0 or self.min_seconds > self.max_seconds:
            raise ValidationError(
                "allowed_range",
                f"min ({self.min_seconds}) must be >= 0 and <= max ({self.max_seconds})",
            )

    def contains(self, seconds: float) -> bool:
        return self.min_seconds <= seconds <= self.max_seconds


@dataclass(frozen=True)
class ScheduleConstraints:
    sessions_per_week: int
    target_minutes: int
    allowed_min_minutes: int
    allowed_max_minutes: int
    weekdays: tuple[str, ...]

    def __post_init__(self):
        if self.sessions_per_week <= 0:
            raise ValidationError("sessions_per_week", "must be > 0")
        if len(self.weekdays) != self.sessions_per_week:
            raise ValidationError(
                "weekdays",
                f"expected {self.sessions_per_week} weekdays, got {len(self.weekdays)}",
            )
        if not self.allowed_min_minutes <= self.target_minutes <= self.allowed_max_minutes:
            raise ValidationError(
                "target_minutes",
                f"must lie within [{self.allowed_min_minutes}, {self.allowed_max_minutes}]",
            )

    @property
    def allowed_range(self) -> DurationRange:
        return DurationRange(self.allowed_min_minutes * 60, self.allowed_max_minutes * 60)

    def to_dict(self) -> dict[str, Any]:
        return {
            "sessions_per_week": self.sessions_per_week,
            "target_minutes": self.target_minutes,
            "allowed_duration_minutes": {
                "min": self.allowed_min_minutes,
                "max": self.allowed_max_minutes,
            },
            "weekdays": list(self.weekdays),
        }


@dataclass
class Blueprint:
    """Structured program proposed by the planning model, before fitting."""

    program_name: str
    duration_weeks: int
    sessions: list[Session] = field(default_factory=list)
    focus_distribution: FocusDistribution | None = None
    candidate_pool_hash: str | None = None

    def exercise_ids(self) -> list[str]:
        return [ex.exercise_id for s in self.sessions for _, _, _, ex in s.iter_exercises()]

    def to_dict(self) -> dict[str, Any]:
        return {
            "program_name": self.program_name,
            "duration_weeks": self.duration_weeks,
            "sessions": [s.to_dict() for s in self.sessions],
            "focus_distribution": (
                self.focus_distribution.to_dict() if self.focus_distribution else None
            ),
            "candidate_pool_hash": self.candidate_pool_hash,
        }
