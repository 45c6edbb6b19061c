"""
Duration Fitter

Deterministic greedy adjustment of a session's prescription so that its
estimated duration lands inside an allowed window.

Algorithm (one change at a time, duration recomputed after every change):
1. Session already in range: returned unchanged.
2. Too long: within priority 3, then priority 2, reduce sets by one on the
   exercise with the largest contribution among those above their minimum;
   if none, remove the exercise with the largest contribution. Priority 1
   exercises are never touched. A removal that would leave the session with
   no timed exercise is not allowed.
3. Too short: add one set to the priority 2 exercise with the smallest
   per-set cost that still fits under the max; otherwise extend the cooldown
   (or warmup) allowance, clipped to the remaining headroom.
4. At most ``max_adjustments`` changes; running out is FitterDidNotConverge.

Ties are broken by ascending exercise_id, then position, so identical
inputs always produce identical output.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from fitplan.config.fitting_config_loader import FitterConfig, get_fitting_config
from fitplan.core.metrics import fitter_actions_total, fitter_outcomes_total
from fitplan.models.enums import (
    BlockType,
    FitActionType,
    FitStatus,
    InfeasibleReason,
    Priority,
)
from fitplan.models.program import (
    DurationRange,
    ExerciseCaps,
    PrescribedExercise,
    Session,
    TimeModel,
)
from fitplan.services.time_model import (
    count_timed_exercises,
    duration_of,
    is_timed_block,
    seconds_per_added_set,
    session_duration,
)

logger = logging.getLogger(__name__)

SHRINK_TIERS = (Priority.REMOVE_FIRST, Priority.ADJUSTABLE)


@dataclass(frozen=True)
class FitAction:
    """One single-step change applied by the fitter.

    For set changes ``from_value``/``to_value`` are set counts; for allowance
    extensions they are the extension in seconds.
    """

    action: FitActionType
    block_type: BlockType
    exercise_id: str | None
    from_value: int
    to_value: int
    seconds_before: float
    seconds_after: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": self.action.value,
            "block_type": self.block_type.value,
            "exercise_id": self.exercise_id,
            "from": self.from_value,
            "to": self.to_value,
            "seconds_before": self.seconds_before,
            "seconds_after": self.seconds_after,
        }


@dataclass
class FitReport:
    session_index: int
    before_seconds: float
    after_seconds: float
    allowed_min_seconds: float
    allowed_max_seconds: float
    iterations: int = 0
    actions: list[FitAction] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_index": self.session_index,
            "before_seconds": self.before_seconds,
            "after_seconds": self.after_seconds,
            "allowed_range_seconds": [self.allowed_min_seconds, self.allowed_max_seconds],
            "iterations": self.iterations,
            "actions": [a.to_dict() for a in self.actions],
        }


@dataclass
class FitResult:
    """Outcome of fitting one session.

    When ``status`` is INFEASIBLE, ``session`` holds the last state the fitter
    reached and ``reason`` says why it stopped.
    """

    session: Session
    status: FitStatus
    report: FitReport
    reason: InfeasibleReason | None = None

    @property
    def is_feasible(self) -> bool:
        return self.status != FitStatus.INFEASIBLE

    @property
    def duration_seconds(self) -> float:
        return self.report.after_seconds

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "reason": self.reason.value if self.reason else None,
            "session": self.session.to_dict(),
            "report": self.report.to_dict(),
        }


class DurationFitter:
    """Greedy per-session duration fitter.

    Example:
        >>> fitter = DurationFitter(TimeModel(work_seconds_per_10_reps=60))
        >>> result = fitter.fit(session, DurationRange(1200, 1500))
        >>> result.status, result.report.after_seconds
        (<FitStatus.FITTED: 'fitted'>, 1500.0)
    """

    def __init__(self, time_model: TimeModel, config: FitterConfig | None = None):
        self._time_model = time_model
        self._config = config or get_fitting_config().fitter

    def fit(
        self,
        session: Session,
        allowed_range: DurationRange,
        caps: Mapping[str, ExerciseCaps] | None = None,
    ) -> FitResult:
        """Fit a copy of ``session`` into ``allowed_range``; the input is never mutated.

        Args:
            session: Session to fit.
            allowed_range: Allowed duration window in seconds.
            caps: Optional per-exercise_id set bounds.

        Returns:
            FitResult with status UNCHANGED, FITTED or INFEASIBLE.

        Raises:
            ParseError: If a timed exercise has a malformed reps string.
        """
        caps = caps or {}
        working = copy.deepcopy(session)
        before = session_duration(working, self._time_model)
        report = FitReport(
            session_index=session.session_index,
            before_seconds=before,
            after_seconds=before,
            allowed_min_seconds=allowed_range.min_seconds,
            allowed_max_seconds=allowed_range.max_seconds,
        )

        if allowed_range.contains(before):
            return self._finish(FitResult(working, FitStatus.UNCHANGED, report))

        for _ in range(self._config.max_adjustments):
            current = report.after_seconds
            if current > allowed_range.max_seconds:
                action = self._shrink_step(working, current, caps)
                stuck_reason = InfeasibleReason.CANNOT_SHRINK_BELOW_MAX
            else:
                action = self._grow_step(working, current, allowed_range, caps)
                stuck_reason = InfeasibleReason.CANNOT_GROW_TO_MIN

            if action is None:
                return self._finish(
                    FitResult(working, FitStatus.INFEASIBLE, report, stuck_reason)
                )

            report.actions.append(action)
            report.iterations += 1
            report.after_seconds = action.seconds_after
            fitter_actions_total.labels(action=action.action.value).inc()

            if allowed_range.contains(report.after_seconds):
                return self._finish(FitResult(working, FitStatus.FITTED, report))

        return self._finish(
            FitResult(
                working,
                FitStatus.INFEASIBLE,
                report,
                InfeasibleReason.FITTER_DID_NOT_CONVERGE,
            )
        )

    def _finish(self, result: FitResult) -> FitResult:
        fitter_outcomes_total.labels(status=result.status.value).inc()
        report = result.report
        if result.is_feasible:
            logger.debug(
                f"Session {report.session_index}: {result.status.value} "
                f"{report.before_seconds:.0f}s -> {report.after_seconds:.0f}s "
                f"in {report.iterations} steps"
            )
        else:
            logger.info(
                f"Session {report.session_index} infeasible ({result.reason.value}): "
                f"{report.after_seconds:.0f}s after {report.iterations} steps, allowed "
                f"[{report.allowed_min_seconds:.0f}, {report.allowed_max_seconds:.0f}]"
            )
        return result

    def _min_sets(self, exercise: PrescribedExercise, caps: Mapping[str, ExerciseCaps]) -> int:
        cap = caps.get(exercise.exercise_id)
        if cap is not None and cap.min_sets is not None:
            return max(1, cap.min_sets)
        return max(1, self._config.min_sets)

    def _max_sets(self, exercise: PrescribedExercise, caps: Mapping[str, ExerciseCaps]) -> int:
        cap = caps.get(exercise.exercise_id)
        if cap is not None and cap.max_sets is not None:
            return cap.max_sets
        return self._config.max_sets

    def _shrink_step(
        self,
        session: Session,
        current: float,
        caps: Mapping[str, ExerciseCaps],
    ) -> FitAction | None:
        tm = self._time_model
        can_remove = count_timed_exercises(session) > 1

        for tier in SHRINK_TIERS:
            reducible = []
            removable = []
            for bi, ei, block, exercise in session.iter_exercises():
                if exercise.priority != tier or not is_timed_block(block.type):
                    continue
                contribution = duration_of(exercise, tm, block.type)
                key = (-contribution, exercise.exercise_id, bi, ei)
                if (
                    exercise.sets > self._min_sets(exercise, caps)
                    and seconds_per_added_set(exercise, tm, block.type) > 0
                ):
                    reducible.append(key)
                if can_remove and (
                    block.type != BlockType.MAIN or self._config.allow_remove_from_main
                ):
                    removable.append(key)

            if reducible:
                _, _, bi, ei = min(reducible)
                block = session.blocks[bi]
                exercise = block.exercises[ei]
                exercise.sets -= 1
                return FitAction(
                    action=FitActionType.REDUCE_SETS,
                    block_type=block.type,
                    exercise_id=exercise.exercise_id,
                    from_value=exercise.sets + 1,
                    to_value=exercise.sets,
                    seconds_before=current,
                    seconds_after=session_duration(session, tm),
                )

            if removable:
                _, _, bi, ei = min(removable)
                block = session.blocks[bi]
                exercise = block.exercises.pop(ei)
                if not block.exercises:
                    del session.blocks[bi]
                return FitAction(
                    action=FitActionType.REMOVE_EXERCISE,
                    block_type=block.type,
                    exercise_id=exercise.exercise_id,
                    from_value=exercise.sets,
                    to_value=0,
                    seconds_before=current,
                    seconds_after=session_duration(session, tm),
                )

        return None

    def _grow_step(
        self,
        session: Session,
        current: float,
        allowed_range: DurationRange,
        caps: Mapping[str, ExerciseCaps],
    ) -> FitAction | None:
        tm = self._time_model
        headroom = allowed_range.max_seconds - current

        candidates = []
        for bi, ei, block, exercise in session.iter_exercises():
            if exercise.priority != Priority.ADJUSTABLE or not is_timed_block(block.type):
                continue
            if exercise.sets >= self._max_sets(exercise, caps):
                continue
            cost = seconds_per_added_set(exercise, tm, block.type)
            if 0 < cost <= headroom:
                candidates.append((cost, exercise.exercise_id, bi, ei))

        if candidates:
            _, _, bi, ei = min(candidates)
            block = session.blocks[bi]
            exercise = block.exercises[ei]
            exercise.sets += 1
            return FitAction(
                action=FitActionType.ADD_SETS,
                block_type=block.type,
                exercise_id=exercise.exercise_id,
                from_value=exercise.sets - 1,
                to_value=exercise.sets,
                seconds_before=current,
                seconds_after=session_duration(session, tm),
            )

        return self._extend_allowance(session, current, headroom)

    def _extend_allowance(
        self,
        session: Session,
        current: float,
        headroom: float,
    ) -> FitAction | None:
        budget_seconds = self._config.max_extension_minutes * 60
        options = (
            (BlockType.COOLDOWN, "cooldown_extension_seconds", FitActionType.EXTEND_COOLDOWN),
            (BlockType.WARMUP, "warmup_extension_seconds", FitActionType.EXTEND_WARMUP),
        )
        for block_type, attr, action_type in options:
            if not session.has_block(block_type):
                continue
            extended = getattr(session, attr)
            step = int(min(self._config.extension_step_seconds, headroom, budget_seconds - extended))
            if step <= 0:
                continue
            setattr(session, attr, extended + step)
            return FitAction(
                action=action_type,
                block_type=block_type,
                exercise_id=None,
                from_value=extended,
                to_value=extended + step,
                seconds_before=current,
                seconds_after=session_duration(session, self._time_model),
            )
        return None


def fit(
    session: Session,
    time_model: TimeModel,
    allowed_range: DurationRange,
    caps: Mapping[str, ExerciseCaps] | None = None,
    config: FitterConfig | None = None,
) -> FitResult:
    """Fit one session; see DurationFitter.fit."""
    return DurationFitter(time_model, config).fit(session, allowed_range, caps)
