from datetime import datetime, timezone

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from fitplan.core.exceptions import (
    BusinessRuleError,
    ConflictError,
    DomainError,
    FormatError,
    LLMUnavailableError,
    NotFoundError,
    ParseError,
    ValidationError,
)


ERROR_STATUS_MAP: dict[type[DomainError], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ValidationError: status.HTTP_400_BAD_REQUEST,
    ParseError: status.HTTP_400_BAD_REQUEST,
    BusinessRuleError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ConflictError: status.HTTP_409_CONFLICT,
    FormatError: status.HTTP_502_BAD_GATEWAY,
    LLMUnavailableError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def status_for(exc: DomainError) -> int:
    """Most specific mapped status along the exception's class hierarchy."""
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS_MAP:
            return ERROR_STATUS_MAP[cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_envelope(request: Request, errors: list[dict]) -> dict:
    return {
        "data": None,
        "meta": {
            "request_id": getattr(request.state, "request_id", None),
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        },
        "errors": errors,
    }


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    error = {"code": exc.code, "message": exc.message, "details": exc.details}
    return JSONResponse(
        status_code=status_for(exc),
        content=error_envelope(request, [error]),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render body/path validation failures in the same envelope as domain errors."""
    errors = [
        {
            "code": "REQUEST_INVALID",
            "message": err.get("msg", "Invalid request"),
            "details": {"loc": list(err.get("loc", ())), "type": err.get("type")},
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=jsonable_encoder(error_envelope(request, errors)),
    )
