"""
Generation Pipeline

Sequential per-job pipeline:

    analysis -> blueprint (+ validation, corrective regeneration) -> fitting
             -> recovery check -> completed

Model stages are bounded: every request goes through the provider chain with
a timeout, unparseable replies get at most ``format_repair_attempts`` repair
turns, and a rejected blueprint is regenerated at most
``blueprint_max_attempts - 1`` times with its violations sent back.

Cancellation is cooperative. The job is re-read before every stage and every
model call; once it is terminal, or removed by cleanup, the run stops without
touching it again.
"""
from __future__ import annotations

from typing import Any, Callable, TypeVar

from fitplan.config.fitting_config_loader import FittingConfig, get_fitting_config
from fitplan.config.settings import Settings, get_settings
from fitplan.core.exceptions import (
    BlueprintRejectedError,
    FormatError,
    InfeasibleProgramError,
    InvalidJobTransitionError,
    JobCancelledError,
    LLMUnavailableError,
    NotFoundError,
    PipelineError,
)
from fitplan.core.logging import get_logger, log_context
from fitplan.core.metrics import blueprint_violations_total, generation_stage_duration_seconds
from fitplan.llm.base import LLMConfig, LLMProvider, Message
from fitplan.llm.json_extraction import extract_json_object
from fitplan.llm.prompts import (
    build_analysis_system_prompt,
    build_analysis_user_prompt,
    build_blueprint_system_prompt,
    build_blueprint_user_prompt,
    build_corrective_message,
    build_format_repair_message,
)
from fitplan.llm.schemas import ANALYSIS_SCHEMA, BLUEPRINT_SCHEMA
from fitplan.models.enums import FailureReason, JobStatus, ViolationCode
from fitplan.models.job import GenerationJob
from fitplan.models.program import Blueprint, FocusDistribution, ScheduleConstraints, TimeModel
from fitplan.schemas.jobs import GenerateProgramRequest
from fitplan.schemas.llm import AnalysisOutput, BlueprintPayload, parse_contract
from fitplan.services.blueprint_validator import (
    Violation,
    validate_blueprint,
    validate_focus_distribution,
)
from fitplan.services.candidate_pool import CandidatePools
from fitplan.services.job_manager import JobManager
from fitplan.services.program_planner import FittedProgram, plan_sessions

logger = get_logger(__name__)

C = TypeVar("C")


class GenerationPipeline:
    """Runs one generation job from profile to fitted program.

    Example:
        >>> pipeline = GenerationPipeline(get_llm_provider(), job_manager, pools)
        >>> job = job_manager.create_job("user-1")
        >>> await pipeline.run(job.id, request)
    """

    def __init__(
        self,
        llm: LLMProvider,
        job_manager: JobManager,
        pools: CandidatePools,
        settings: Settings | None = None,
        config: FittingConfig | None = None,
    ):
        self._llm = llm
        self._jobs = job_manager
        self._pools = pools
        self._settings = settings or get_settings()
        self._config = config or get_fitting_config()

    async def run(self, job_id: str, request: GenerateProgramRequest) -> GenerationJob | None:
        """Execute the pipeline for ``job_id``; always leaves the job terminal.

        Returns:
            The final job snapshot, or None if the job disappeared meanwhile.
        """
        job = self._jobs.get_job(job_id)
        if job is None:
            logger.warning("generation_job_missing", job_id=job_id)
            return None

        with log_context(job_id=job_id, user_id=job.user_id):
            return await self._run(job_id, request)

    async def _run(self, job_id: str, request: GenerateProgramRequest) -> GenerationJob | None:
        progress = self._config.pipeline.progress
        try:
            schedule = request.schedule.to_domain(self._settings)
            time_model = request.time_model.to_domain(self._settings)
            self._advance(job_id, status=JobStatus.GENERATING, progress=progress.started)
            logger.info("generation_started", sessions_per_week=schedule.sessions_per_week)

            with generation_stage_duration_seconds.labels(stage="analysis").time():
                focus = await self._run_analysis(job_id, request)
            self._advance(job_id, progress=progress.analysis_done)

            with generation_stage_duration_seconds.labels(stage="blueprint").time():
                blueprint = await self._run_blueprint(job_id, request, schedule, time_model, focus)
            self._advance(job_id, progress=progress.blueprint_done)

            self._ensure_active(job_id)
            with generation_stage_duration_seconds.labels(stage="fitting").time():
                program = self._run_fitting(blueprint, time_model, schedule)
            self._advance(job_id, progress=progress.fitting_done)

            self._ensure_active(job_id)
            completed = self._advance(job_id, status=JobStatus.COMPLETED, result=program.to_dict())
            logger.info(
                "generation_completed",
                sessions=len(program.fit_results),
                spacing_conflicts=len(program.spacing.conflicts),
            )
            return completed

        except JobCancelledError:
            job = self._jobs.get_job(job_id)
            if job is None:
                logger.warning("generation_job_removed")
            else:
                logger.info("generation_stopped_after_cancel")
            return job
        except PipelineError as e:
            return self._fail(job_id, self._failure_reason(e), e.message, e.details)
        except Exception as e:
            logger.exception("generation_crashed", error=str(e))
            return self._fail(
                job_id, FailureReason.INTERNAL_ERROR, "Unexpected error during generation",
                {"exception": type(e).__name__},
            )

    # ---- job bookkeeping -------------------------------------------------

    def _ensure_active(self, job_id: str) -> None:
        job = self._jobs.get_job(job_id)
        if job is None or job.status.is_terminal:
            raise JobCancelledError(job_id)

    def _advance(self, job_id: str, **changes: Any) -> GenerationJob:
        try:
            return self._jobs.update_job(job_id, **changes)
        except InvalidJobTransitionError:
            # Only a terminal job rejects these updates: it was cancelled meanwhile
            raise JobCancelledError(job_id) from None
        except NotFoundError:
            # Removed by cleanup while a stage was running
            raise JobCancelledError(job_id) from None

    def _fail(
        self,
        job_id: str,
        reason: FailureReason,
        message: str,
        details: dict[str, Any] | None,
    ) -> GenerationJob | None:
        logger.warning("generation_failed", reason=reason.value, error=message)
        try:
            return self._jobs.update_job(
                job_id,
                status=JobStatus.FAILED,
                error=message,
                reason=reason,
                details=details or {},
            )
        except InvalidJobTransitionError:
            return self._jobs.get_job(job_id)
        except NotFoundError:
            logger.warning("generation_job_removed")
            return None

    @staticmethod
    def _failure_reason(error: PipelineError) -> FailureReason:
        if isinstance(error, FormatError):
            return FailureReason.FORMAT_ERROR
        if isinstance(error, LLMUnavailableError):
            return FailureReason.LLM_UNAVAILABLE
        if isinstance(error, (BlueprintRejectedError, InfeasibleProgramError)):
            return FailureReason(error.reason)
        return FailureReason.INTERNAL_ERROR

    # ---- model calls -----------------------------------------------------

    async def _complete(
        self,
        job_id: str,
        messages: list[Message],
        stage: str,
        schema: dict[str, Any],
        parse: Callable[[dict[str, Any]], C],
    ) -> tuple[C, str, list[Message]]:
        """One logical model answer with bounded format repair.

        Returns:
            (parsed contract, raw reply text, conversation including repair turns)

        Raises:
            FormatError: If the reply is still unusable after the repair turns.
        """
        llm_config = LLMConfig(
            temperature=self._settings.llm_temperature,
            json_schema=schema,
            stage=stage,
        )
        repairs = self._config.pipeline.format_repair_attempts
        conversation = list(messages)
        last_error: FormatError | None = None

        for attempt in range(repairs + 1):
            self._ensure_active(job_id)
            response = await self._llm.chat(conversation, llm_config)
            try:
                data = extract_json_object(response.content)
                return parse(data), response.content, conversation
            except FormatError as e:
                logger.warning(
                    "llm_format_error", stage=stage, attempt=attempt + 1, error=e.message
                )
                last_error = e
                conversation = [
                    *conversation,
                    Message(role="assistant", content=response.content),
                    build_format_repair_message(e.message),
                ]
        raise last_error

    async def _run_analysis(self, job_id: str, request: GenerateProgramRequest) -> FocusDistribution:
        messages = [
            Message(role="system", content=build_analysis_system_prompt()),
            Message(role="user", content=build_analysis_user_prompt(request.user.model_dump())),
        ]
        max_attempts = self._config.pipeline.analysis_max_attempts
        violations: list[Violation] = []

        for attempt in range(1, max_attempts + 1):
            analysis, raw, messages = await self._complete(
                job_id, messages, "analysis", ANALYSIS_SCHEMA,
                lambda data: parse_contract(AnalysisOutput, data, "analysis"),
            )
            focus = analysis.focus_distribution.to_domain()
            violations = validate_focus_distribution(focus)
            if not violations:
                logger.info("analysis_completed", attempt=attempt, focus=focus.to_dict())
                return focus

            blueprint_violations_total.labels(code=ViolationCode.INVALID_FOCUS_SUM.value).inc()
            logger.warning("analysis_rejected", attempt=attempt, total=focus.total)
            messages = [
                *messages,
                Message(role="assistant", content=raw),
                build_corrective_message([v.to_dict() for v in violations]),
            ]

        raise BlueprintRejectedError(
            f"Analysis focus distribution invalid after {max_attempts} attempts",
            [v.to_dict() for v in violations],
            reason=FailureReason.INVALID_FOCUS_SUM.value,
        )

    def _pools_for(self, request: GenerateProgramRequest) -> CandidatePools:
        if request.available_equipment:
            return self._pools.filter_by_equipment(set(request.available_equipment))
        return self._pools

    async def _run_blueprint(
        self,
        job_id: str,
        request: GenerateProgramRequest,
        schedule: ScheduleConstraints,
        time_model: TimeModel,
        focus: FocusDistribution,
    ) -> Blueprint:
        pools = self._pools_for(request)
        pool_hash = pools.pool_hash
        messages = [
            Message(
                role="system",
                content=build_blueprint_system_prompt(schedule.sessions_per_week),
            ),
            Message(
                role="user",
                content=build_blueprint_user_prompt(
                    schedule=schedule.to_dict(),
                    focus_distribution=focus.to_dict(),
                    time_model=time_model.to_dict(),
                    candidate_pools=pools.to_prompt(),
                    candidate_pool_hash=pool_hash,
                    sport=request.user.sport,
                ),
            ),
        ]
        max_attempts = self._config.pipeline.blueprint_max_attempts
        violations: list[dict[str, Any]] = []

        for attempt in range(1, max_attempts + 1):
            payload, raw, messages = await self._complete(
                job_id, messages, "blueprint", BLUEPRINT_SCHEMA,
                lambda data: parse_contract(BlueprintPayload, data, "blueprint"),
            )
            blueprint = payload.to_blueprint(focus, pool_hash)
            pools.enrich_blueprint(blueprint)

            result = validate_blueprint(blueprint, pools, schedule=schedule)
            if result.ok:
                logger.info(
                    "blueprint_accepted",
                    attempt=attempt,
                    program_name=blueprint.program_name,
                    sessions=len(blueprint.sessions),
                )
                return blueprint

            for violation in result.violations:
                blueprint_violations_total.labels(code=violation.code.value).inc()
            violations = result.to_list()
            logger.warning(
                "blueprint_rejected",
                attempt=attempt,
                violations=len(violations),
                codes=sorted(c.value for c in result.codes()),
            )
            messages = [
                *messages,
                Message(role="assistant", content=raw),
                build_corrective_message(violations),
            ]

        raise BlueprintRejectedError(
            f"Blueprint rejected after {max_attempts} attempts",
            violations,
        )

    # ---- deterministic stages --------------------------------------------

    def _run_fitting(
        self,
        blueprint: Blueprint,
        time_model: TimeModel,
        schedule: ScheduleConstraints,
    ) -> FittedProgram:
        program = plan_sessions(
            blueprint,
            time_model,
            schedule,
            fitter_config=self._config.fitter,
            recovery_config=self._config.recovery,
        )
        failed = program.first_infeasible
        if failed is not None:
            raise InfeasibleProgramError(
                failed.reason.value,
                f"Session {failed.session.session_index} cannot be fitted: {failed.reason.value}",
                {
                    "session_index": failed.session.session_index,
                    "fit": failed.report.to_dict(),
                    "infeasible_sessions": [
                        {"session_index": r.session.session_index, "reason": r.reason.value}
                        for r in program.fit_results
                        if not r.is_feasible
                    ],
                },
            )
        return program
