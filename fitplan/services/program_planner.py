"""
Program Planner

Runs the deterministic half of generation over a validated blueprint: every
session is fitted into the schedule's duration window independently, then
the fitted week is checked for recovery spacing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from fitplan.config.fitting_config_loader import (
    FitterConfig,
    RecoveryConfig,
    get_fitting_config,
)
from fitplan.models.program import (
    Blueprint,
    ExerciseCaps,
    ScheduleConstraints,
    Session,
    TimeModel,
)
from fitplan.services.duration_fitter import DurationFitter, FitResult
from fitplan.services.recovery_scheduler import SpacingReport, check_spacing
from fitplan.services.time_model import session_minutes

logger = logging.getLogger(__name__)


@dataclass
class FittedProgram:
    blueprint: Blueprint
    schedule: ScheduleConstraints
    time_model: TimeModel
    fit_results: list[FitResult] = field(default_factory=list)
    spacing: SpacingReport = field(default_factory=SpacingReport)

    @property
    def sessions(self) -> list[Session]:
        return [r.session for r in self.fit_results]

    @property
    def is_feasible(self) -> bool:
        return all(r.is_feasible for r in self.fit_results)

    @property
    def first_infeasible(self) -> FitResult | None:
        return next((r for r in self.fit_results if not r.is_feasible), None)

    def to_dict(self) -> dict[str, Any]:
        """Program payload stored as the job result."""
        sessions = []
        for result in self.fit_results:
            data = result.session.to_dict()
            data["estimated_duration_minutes"] = session_minutes(result.session, self.time_model)
            data["fit"] = {
                "status": result.status.value,
                "reason": result.reason.value if result.reason else None,
                **result.report.to_dict(),
            }
            sessions.append(data)

        focus = self.blueprint.focus_distribution
        return {
            "program_name": self.blueprint.program_name,
            "duration_weeks": self.blueprint.duration_weeks,
            "focus_distribution": focus.to_dict() if focus else None,
            "candidate_pool_hash": self.blueprint.candidate_pool_hash,
            "schedule": self.schedule.to_dict(),
            "time_model": self.time_model.to_dict(),
            "sessions": sessions,
            "recovery": self.spacing.to_dict(),
        }


def plan_sessions(
    blueprint: Blueprint,
    time_model: TimeModel,
    schedule: ScheduleConstraints,
    caps: Mapping[str, ExerciseCaps] | None = None,
    fitter_config: FitterConfig | None = None,
    recovery_config: RecoveryConfig | None = None,
) -> FittedProgram:
    """Fit every session of ``blueprint`` and check recovery spacing.

    Infeasible sessions do not stop the run; callers inspect
    ``FittedProgram.is_feasible``.
    """
    config = get_fitting_config() if fitter_config is None or recovery_config is None else None
    fitter = DurationFitter(time_model, fitter_config or config.fitter)
    recovery = recovery_config or config.recovery
    allowed_range = schedule.allowed_range

    program = FittedProgram(blueprint=blueprint, schedule=schedule, time_model=time_model)
    for session in blueprint.sessions:
        program.fit_results.append(fitter.fit(session, allowed_range, caps))

    program.spacing = check_spacing(
        program.sessions,
        recovery.min_recovery_hours,
        recovery.spaced_block_types,
    )

    infeasible = sum(1 for r in program.fit_results if not r.is_feasible)
    logger.info(
        f"Planned {len(program.fit_results)} sessions for {blueprint.program_name!r}: "
        f"{infeasible} infeasible, {len(program.spacing.conflicts)} spacing conflicts"
    )
    return program
