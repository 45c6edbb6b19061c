"""
Time Model

Converts exercise prescriptions into elapsed seconds.

Accounting convention (shared by the fitter's greedy selection):
- An exercise costs ``sets * work_per_set + (sets - 1) * rest``; no rest is
  counted after the last set.
- ``rest_between_exercises_seconds`` is added once between every two
  consecutive timed exercises, across block boundaries.
- Warmup and cooldown blocks are a flat allowance
  (``*_minutes_default * 60`` plus any fitter extension) when present; their
  exercises are performed inside that allowance and are not timed one by one.
- Ranges ("8-12", "30-45s") use the midpoint rounded half-up.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass

from fitplan.core.exceptions import ParseError
from fitplan.models.enums import ALLOWANCE_BLOCK_TYPES, SET_BASED_BLOCK_TYPES, BlockType
from fitplan.models.program import PrescribedExercise, Session, TimeModel


_NUMBER = r"(\d+(?:\.\d+)?)"
_RANGE = rf"{_NUMBER}(?:\s*-\s*{_NUMBER})?"

_MINUTES_RE = re.compile(rf"^{_RANGE}\s*(?:m|min|mins|minute|minutes)$")
_SECONDS_RE = re.compile(rf"^{_RANGE}\s*(?:s|sec|secs|second|seconds)$")
_REPS_RE = re.compile(r"^(\d+)(?:\s*-\s*(\d+))?(?:\s*reps?)?$")


@dataclass(frozen=True)
class RepsSpec:
    """Parsed reps field: either a representative rep count or a duration."""

    reps: int | None = None
    seconds: float | None = None

    @property
    def is_timed(self) -> bool:
        return self.seconds is not None


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _representative(low: str, high: str | None) -> float:
    if high is None:
        return float(low)
    return (float(low) + float(high)) / 2


def parse_reps(reps: str) -> RepsSpec:
    """Parse a reps string such as "8-12", "10", "30-45s" or "6 min".

    Raises:
        ParseError: If the value is empty, non-positive or not understood.
    """
    if not isinstance(reps, str):
        raise ParseError(str(reps))

    text = reps.strip().lower().replace("–", "-").replace("—", "-")
    if not text:
        raise ParseError(reps, "Reps value is empty")

    match = _MINUTES_RE.match(text)
    if match:
        seconds = round_half_up(_representative(*match.groups()) * 60)
        if seconds <= 0:
            raise ParseError(reps, f"Duration must be positive: {reps!r}")
        return RepsSpec(seconds=seconds)

    match = _SECONDS_RE.match(text)
    if match:
        seconds = round_half_up(_representative(*match.groups()))
        if seconds <= 0:
            raise ParseError(reps, f"Duration must be positive: {reps!r}")
        return RepsSpec(seconds=seconds)

    match = _REPS_RE.match(text)
    if match:
        count = round_half_up(_representative(*match.groups()))
        if count <= 0:
            raise ParseError(reps, f"Rep count must be positive: {reps!r}")
        return RepsSpec(reps=count)

    raise ParseError(reps)


def rest_between_sets(exercise: PrescribedExercise, time_model: TimeModel) -> int:
    if exercise.rest_seconds is not None and exercise.rest_seconds >= 0:
        return exercise.rest_seconds
    return time_model.rest_between_sets_seconds


def work_seconds_per_set(spec: RepsSpec, time_model: TimeModel) -> float:
    if spec.is_timed:
        return spec.seconds
    return spec.reps / 10 * time_model.work_seconds_per_10_reps


def _repeats_per_set(spec: RepsSpec, block_type: BlockType) -> bool:
    return not spec.is_timed or block_type in SET_BASED_BLOCK_TYPES


def duration_of(
    exercise: PrescribedExercise,
    time_model: TimeModel,
    block_type: BlockType = BlockType.MAIN,
) -> float:
    """Seconds spent on one exercise, excluding the gap to the next one.

    Raises:
        ParseError: If the exercise's reps string is malformed.
    """
    sets = max(0, exercise.sets)
    if sets == 0:
        return 0.0

    spec = parse_reps(exercise.reps)
    work = work_seconds_per_set(spec, time_model)
    if not _repeats_per_set(spec, block_type):
        return float(work)

    rest = rest_between_sets(exercise, time_model)
    return sets * work + (sets - 1) * rest


def seconds_per_added_set(
    exercise: PrescribedExercise,
    time_model: TimeModel,
    block_type: BlockType = BlockType.MAIN,
) -> float:
    """Marginal cost of one more set; zero when sets do not repeat the work."""
    spec = parse_reps(exercise.reps)
    if not _repeats_per_set(spec, block_type):
        return 0.0
    work = work_seconds_per_set(spec, time_model)
    if exercise.sets <= 0:
        return work
    return work + rest_between_sets(exercise, time_model)


def is_timed_block(block_type: BlockType) -> bool:
    return block_type not in ALLOWANCE_BLOCK_TYPES


def warmup_seconds(session: Session, time_model: TimeModel) -> float:
    if not session.has_block(BlockType.WARMUP):
        return 0.0
    return time_model.warmup_minutes_default * 60 + session.warmup_extension_seconds


def cooldown_seconds(session: Session, time_model: TimeModel) -> float:
    if not session.has_block(BlockType.COOLDOWN):
        return 0.0
    return time_model.cooldown_minutes_default * 60 + session.cooldown_extension_seconds


def count_timed_exercises(session: Session) -> int:
    return sum(1 for _, _, block, _ in session.iter_exercises() if is_timed_block(block.type))


def session_duration(session: Session, time_model: TimeModel) -> float:
    """Estimated session length in seconds.

    Raises:
        ParseError: If any timed exercise has a malformed reps string.
    """
    total = 0.0
    timed = 0
    for _, _, block, exercise in session.iter_exercises():
        if not is_timed_block(block.type):
            continue
        total += duration_of(exercise, time_model, block.type)
        timed += 1

    if timed > 1:
        total += (timed - 1) * time_model.rest_between_exercises_seconds

    total += warmup_seconds(session, time_model)
    total += cooldown_seconds(session, time_model)
    return total


def session_minutes(session: Session, time_model: TimeModel) -> float:
    return round(session_duration(session, time_model) / 60, 1)
