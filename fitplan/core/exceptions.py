class DomainError(Exception):
    def __init__(self, code: str, message: str, details: dict | None = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)


class NotFoundError(DomainError):
    def __init__(self, entity: str, message: str | None = None, details: dict | None = None):
        code = f"NF_{entity.upper()}_001"
        msg = message or f"{entity} not found"
        super().__init__(code, msg, details)


class ValidationError(DomainError):
    def __init__(self, field: str, message: str, details: dict | None = None):
        code = f"VAL_{field.upper()}_001"
        msg = f"Validation failed for {field}: {message}"
        super().__init__(code, msg, details or {"field": field})


class BusinessRuleError(DomainError):
    def __init__(self, message: str, code: str = "BR_001", details: dict | None = None):
        super().__init__(code, message, details)


class ConflictError(DomainError):
    def __init__(self, message: str, code: str = "CF_001", details: dict | None = None):
        super().__init__(code, message, details)


class InvalidJobTransitionError(ConflictError):
    def __init__(self, job_id: str, current: str, requested: str):
        super().__init__(
            f"Job {job_id} cannot move from {current} to {requested}",
            code="JOB_TRANSITION",
            details={"job_id": job_id, "current": current, "requested": requested},
        )


class ParseError(DomainError):
    """A reps/duration string could not be interpreted."""

    def __init__(self, value: str, message: str | None = None):
        super().__init__(
            "PARSE_REPS",
            message or f"Cannot parse reps value {value!r}",
            {"value": value},
        )


class PipelineError(DomainError):
    """Base for errors that terminate a generation job."""


class FormatError(PipelineError):
    """Model output is not parseable JSON or does not match its contract."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__("FORMAT_ERROR", message, details)


class LLMUnavailableError(PipelineError):
    """Every configured provider failed or timed out."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__("LLM_UNAVAILABLE", message, details)


class BlueprintRejectedError(PipelineError):
    def __init__(self, message: str, violations: list[dict], reason: str = "BlueprintRejected"):
        super().__init__("BLUEPRINT_REJECTED", message, {"violations": violations})
        self.violations = violations
        self.reason = reason


class InfeasibleProgramError(PipelineError):
    def __init__(self, reason: str, message: str, details: dict | None = None):
        super().__init__("INFEASIBLE", message, details)
        self.reason = reason


class JobCancelledError(PipelineError):
    def __init__(self, job_id: str):
        super().__init__("USER_CANCELLED", f"Job {job_id} was cancelled", {"job_id": job_id})
