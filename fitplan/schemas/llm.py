"""
Pydantic contracts for the model stages.

These describe the JSON the model must return. Shape problems (missing
fields, wrong types, unknown enum values) are FormatErrors; semantic problems
(focus sum, unknown ids, load ranges) are left for the blueprint validator so
they can be reported as violations and sent back for correction.
"""
from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from fitplan.core.exceptions import FormatError
from fitplan.models.enums import BlockType, LoadType, Priority
from fitplan.models.program import (
    Block,
    Blueprint,
    FocusDistribution,
    PrescribedExercise,
    Session,
)

M = TypeVar("M", bound=BaseModel)


class FocusDistributionPayload(BaseModel):
    strength: int
    hypertrophy: int
    endurance: int
    cardio: int

    def to_domain(self) -> FocusDistribution:
        return FocusDistribution(
            strength=self.strength,
            hypertrophy=self.hypertrophy,
            endurance=self.endurance,
            cardio=self.cardio,
        )


class Recommendations(BaseModel):
    sets_per_session_min: int
    sets_per_session_max: int
    weekly_volume_sets_min: int
    weekly_volume_sets_max: int


class AnalysisOutput(BaseModel):
    model_config = ConfigDict(extra="ignore")

    analysis_summary: str
    focus_distribution: FocusDistributionPayload
    recommendations: Recommendations


class PrescribedExercisePayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    exercise_id: str
    exercise_name: str | None = None
    sets: int
    reps: str
    rest_seconds: int | None = None
    load_type: LoadType
    load_value: float
    priority: Priority
    notes: str | None = None
    category: str | None = None
    required_equipment: list[str] | None = None
    primary_muscles: list[str] | None = None
    secondary_muscles: list[str] | None = None
    difficulty: str | None = None

    @field_validator("reps", mode="before")
    @classmethod
    def numeric_reps_as_text(cls, v: Any) -> Any:
        # Models often emit 10 instead of "10"
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(int(v)) if float(v).is_integer() else str(v)
        return v

    def to_domain(self) -> PrescribedExercise:
        return PrescribedExercise(
            exercise_id=self.exercise_id,
            sets=self.sets,
            reps=self.reps,
            load_type=self.load_type,
            load_value=self.load_value,
            priority=self.priority,
            rest_seconds=self.rest_seconds,
            category=self.category or "",
            required_equipment=list(self.required_equipment or []),
            primary_muscles=list(self.primary_muscles or []),
            secondary_muscles=list(self.secondary_muscles or []),
            difficulty=self.difficulty or "",
            exercise_name=self.exercise_name,
            notes=self.notes,
        )


class BlockPayload(BaseModel):
    type: BlockType
    exercises: list[PrescribedExercisePayload] = Field(default_factory=list)


class SessionPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    session_index: int
    weekday: str
    name: str = ""
    blocks: list[BlockPayload] = Field(default_factory=list)


class BlueprintPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    program_name: str
    duration_weeks: int = 1
    sessions: list[SessionPayload] = Field(default_factory=list)

    def to_blueprint(
        self,
        focus_distribution: FocusDistribution | None = None,
        candidate_pool_hash: str | None = None,
    ) -> Blueprint:
        return Blueprint(
            program_name=self.program_name,
            duration_weeks=self.duration_weeks,
            sessions=[
                Session(
                    session_index=s.session_index,
                    weekday=s.weekday,
                    name=s.name,
                    blocks=[
                        Block(type=b.type, exercises=[e.to_domain() for e in b.exercises])
                        for b in s.blocks
                    ],
                )
                for s in self.sessions
            ],
            focus_distribution=focus_distribution,
            candidate_pool_hash=candidate_pool_hash,
        )


def parse_contract(model: type[M], data: dict[str, Any], stage: str) -> M:
    """Validate model output against a contract.

    Raises:
        FormatError: If the data does not match ``model``.
    """
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        errors = [
            {"loc": ".".join(str(p) for p in err["loc"]), "msg": err["msg"]}
            for err in e.errors()
        ]
        raise FormatError(
            f"{stage} output does not match its contract",
            {"stage": stage, "errors": errors[:20]},
        ) from e
