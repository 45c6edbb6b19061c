"""
Blueprint Validator

Fail-closed checks applied to a model-proposed program before any fitting:
pool containment, per-exercise metadata, load consistency, reps syntax,
focus distribution and basic structure. Every problem is reported; nothing
is corrected here.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any

from fitplan.core.exceptions import ParseError
from fitplan.llm.prompts import expected_session_count
from fitplan.models.enums import LoadType, Priority, ViolationCode
from fitplan.models.program import (
    Blueprint,
    FocusDistribution,
    PrescribedExercise,
    ScheduleConstraints,
)
from fitplan.services.candidate_pool import CandidatePools
from fitplan.services.recovery_scheduler import parse_weekday
from fitplan.services.time_model import parse_reps

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Violation:
    code: ViolationCode
    message: str
    session_index: int | None = None
    exercise_id: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "session_index": self.session_index,
            "exercise_id": self.exercise_id,
            "details": dict(self.details),
        }


@dataclass
class ValidationResult:
    violations: list[Violation] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.violations

    def codes(self) -> set[ViolationCode]:
        return {v.code for v in self.violations}

    def by_code(self, code: ViolationCode) -> list[Violation]:
        return [v for v in self.violations if v.code == code]

    def to_list(self) -> list[dict[str, Any]]:
        return [v.to_dict() for v in self.violations]


def validate_focus_distribution(focus: FocusDistribution) -> list[Violation]:
    """The four focus percentages must be non-negative integers summing to 100."""
    if focus.is_valid:
        return []
    return [
        Violation(
            code=ViolationCode.INVALID_FOCUS_SUM,
            message=f"focus_distribution must sum to 100, got {focus.total}",
            details={"focus_distribution": focus.to_dict(), "total": focus.total},
        )
    ]


def check_load(load_type: LoadType, load_value: float) -> str | None:
    """Return a description of the problem, or None when the load is consistent."""
    if not isinstance(load_value, (int, float)) or isinstance(load_value, bool):
        return f"load_value must be numeric, got {load_value!r}"
    if math.isnan(load_value) or math.isinf(load_value):
        return "load_value must be finite"
    if load_type == LoadType.PERCENTAGE_1RM and not 0 < load_value <= 100:
        return f"percentage_1rm requires 0 < value <= 100, got {load_value}"
    if load_type == LoadType.RPE and not 1 <= load_value <= 10:
        return f"rpe requires 1 <= value <= 10, got {load_value}"
    if load_type == LoadType.BODYWEIGHT and load_value < 0:
        return f"bodyweight requires value >= 0, got {load_value}"
    if load_type == LoadType.FIXED and load_value <= 0:
        return f"fixed load requires value > 0, got {load_value}"
    return None


def _missing_metadata(exercise: PrescribedExercise) -> list[str]:
    missing = []
    if not (exercise.category or "").strip():
        missing.append("category")
    if not exercise.required_equipment:
        missing.append("required_equipment")
    if not exercise.primary_muscles:
        missing.append("primary_muscles")
    if not (exercise.difficulty or "").strip():
        missing.append("difficulty")
    return missing


def _validate_exercise(
    exercise: PrescribedExercise,
    session_index: int,
    pools: CandidatePools,
) -> list[Violation]:
    violations = []
    eid = exercise.exercise_id

    if eid not in pools:
        violations.append(Violation(
            ViolationCode.UNKNOWN_EXERCISE_ID,
            f"exercise_id {eid!r} is not in any candidate pool bucket",
            session_index, eid,
        ))

    missing = _missing_metadata(exercise)
    if missing:
        violations.append(Violation(
            ViolationCode.INCOMPLETE_METADATA,
            f"{eid} is missing {', '.join(missing)}",
            session_index, eid, {"missing": missing},
        ))

    problem = check_load(exercise.load_type, exercise.load_value)
    if problem:
        violations.append(Violation(
            ViolationCode.INVALID_LOAD, f"{eid}: {problem}", session_index, eid,
            {"load_type": exercise.load_type.value, "load_value": exercise.load_value},
        ))

    try:
        parse_reps(exercise.reps)
    except ParseError as e:
        violations.append(Violation(
            ViolationCode.MALFORMED_REPS, f"{eid}: {e.message}", session_index, eid,
            {"reps": exercise.reps},
        ))

    if exercise.sets <= 0:
        violations.append(Violation(
            ViolationCode.INVALID_STRUCTURE, f"{eid}: sets must be > 0, got {exercise.sets}",
            session_index, eid,
        ))
    if exercise.rest_seconds is not None and exercise.rest_seconds < 0:
        violations.append(Violation(
            ViolationCode.INVALID_STRUCTURE,
            f"{eid}: rest_seconds must be >= 0, got {exercise.rest_seconds}",
            session_index, eid,
        ))
    if exercise.priority not in tuple(Priority):
        violations.append(Violation(
            ViolationCode.INVALID_STRUCTURE, f"{eid}: priority must be 1, 2 or 3",
            session_index, eid,
        ))
    return violations


def validate_blueprint(
    blueprint: Blueprint,
    pools: CandidatePools,
    focus_distribution: FocusDistribution | None = None,
    schedule: ScheduleConstraints | None = None,
) -> ValidationResult:
    """Check a blueprint against the pool it was generated from.

    Args:
        blueprint: Proposed program.
        pools: Candidate pools offered to the model.
        focus_distribution: Distribution to check; defaults to the one on the blueprint.
        schedule: When given, session weekdays must be among the scheduled days
            and the session count must match the requested week or cycle.

    Returns:
        ValidationResult; ``ok`` is True only when there are no violations.
    """
    result = ValidationResult()

    focus = focus_distribution or blueprint.focus_distribution
    if focus is not None:
        result.violations.extend(validate_focus_distribution(focus))

    if blueprint.duration_weeks < 1:
        result.violations.append(Violation(
            ViolationCode.INVALID_STRUCTURE,
            f"duration_weeks must be >= 1, got {blueprint.duration_weeks}",
        ))
    if not blueprint.sessions:
        result.violations.append(Violation(
            ViolationCode.INVALID_STRUCTURE, "blueprint contains no sessions",
        ))

    scheduled_days = None
    if schedule is not None:
        scheduled_days = {parse_weekday(d)[0] for d in schedule.weekdays if _parses(d)}
        expected = expected_session_count(schedule.sessions_per_week)
        if blueprint.sessions and len(blueprint.sessions) != expected:
            result.violations.append(Violation(
                ViolationCode.INVALID_SCHEDULE,
                f"blueprint has {len(blueprint.sessions)} sessions, expected {expected} "
                f"for {schedule.sessions_per_week} sessions per week",
            ))

    seen_indexes: set[int] = set()
    for session in blueprint.sessions:
        idx = session.session_index
        if idx in seen_indexes:
            result.violations.append(Violation(
                ViolationCode.INVALID_STRUCTURE, f"duplicate session_index {idx}", idx,
            ))
        seen_indexes.add(idx)

        if not _parses(session.weekday):
            result.violations.append(Violation(
                ViolationCode.INVALID_STRUCTURE,
                f"session {idx} has unrecognized weekday {session.weekday!r}", idx,
            ))
        elif scheduled_days is not None and parse_weekday(session.weekday)[0] not in scheduled_days:
            result.violations.append(Violation(
                ViolationCode.INVALID_SCHEDULE,
                f"session {idx} is placed on {session.weekday!r}, outside the scheduled weekdays",
                idx,
            ))

        if not any(block.exercises for block in session.blocks):
            result.violations.append(Violation(
                ViolationCode.INVALID_STRUCTURE, f"session {idx} has no exercises", idx,
            ))

        for _, _, _, exercise in session.iter_exercises():
            result.violations.extend(_validate_exercise(exercise, idx, pools))

    if result.violations:
        logger.info(
            f"Blueprint {blueprint.program_name!r} rejected with {len(result.violations)} violations: "
            f"{sorted(c.value for c in result.codes())}"
        )
    return result


def _parses(weekday: str) -> bool:
    try:
        parse_weekday(weekday)
    except ValueError:
        return False
    return True
