"""Translation of use-case outcomes and exceptions into JSON error responses.

Every failure leaves the API as an ``ApiError`` envelope:
``{status, message, timestamp, debugMessage, subErrors?}``.
"""

import logging
from http import HTTPStatus
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .models.outcome import OutcomeKind, TaskOutcome
from .schemas import ApiError, ApiSubError
from .stores.base import StoreUnavailableError, TaskNotFoundError
from .validation import TaskValidationError

logger = logging.getLogger(__name__)

OUTCOME_STATUS: Dict[OutcomeKind, int] = {
    OutcomeKind.SUCCESS: status.HTTP_200_OK,
    OutcomeKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    OutcomeKind.CONFLICT: status.HTTP_400_BAD_REQUEST,
}

UNIQUE_MARKERS = ("duplicate key", "unique")
FOREIGN_KEY_MARKERS = ("foreign key",)
NOT_NULL_MARKERS = ("not-null", "not null")

GENERIC_ERROR_MESSAGE = "An internal server error occurred. The error has been logged."
UNAVAILABLE_MESSAGE = "Service temporarily unavailable. Please try again later."


class TaskOutcomeError(Exception):
    """Carries a non-success TaskOutcome from a route to its error handler."""

    def __init__(self, outcome: TaskOutcome):
        super().__init__(outcome.message or outcome.kind.value)
        self.outcome = outcome


def raise_for_outcome(outcome: TaskOutcome) -> None:
    """Raise TaskOutcomeError unless ``outcome`` is a success."""
    if not outcome.ok:
        raise TaskOutcomeError(outcome)


def error_response(
    status_code: int,
    message: str,
    debug_message: Optional[str] = None,
    sub_errors: Optional[List[ApiSubError]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """Build a JSONResponse carrying an ApiError envelope."""
    error = ApiError(
        status=status_code,
        message=message,
        debug_message=debug_message,
        sub_errors=sub_errors,
    )
    return JSONResponse(status_code=status_code, content=error.to_content(), headers=headers)


def _json_safe(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, (list, tuple)):
        return [_json_safe(item) for item in value]
    if isinstance(value, dict):
        return {str(key): _json_safe(item) for key, item in value.items()}
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def _sub_errors_from_request(exc: RequestValidationError) -> List[ApiSubError]:
    sub_errors = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ())]
        sub_errors.append(ApiSubError(
            object=loc[0] if loc else "request",
            field=".".join(loc[1:]) if len(loc) > 1 else (loc[0] if loc else ""),
            rejected_value=_json_safe(error.get("input")),
            message=error.get("msg", "Invalid value"),
        ))
    return sub_errors


def classify_integrity_error(exc: IntegrityError) -> tuple:
    """Map a constraint violation to (status code, message)."""
    detail = str(exc.orig if exc.orig is not None else exc).lower()

    if any(marker in detail for marker in UNIQUE_MARKERS):
        return (
            status.HTTP_409_CONFLICT,
            "A record with the submitted data already exists. Check that you are not creating a duplicate.",
        )
    if any(marker in detail for marker in FOREIGN_KEY_MARKERS):
        return (
            status.HTTP_400_BAD_REQUEST,
            "The operation is not possible because related records depend on this data.",
        )
    if any(marker in detail for marker in NOT_NULL_MARKERS):
        return (
            status.HTTP_400_BAD_REQUEST,
            "One or more required fields were not provided.",
        )
    return (
        status.HTTP_400_BAD_REQUEST,
        "Data integrity error. Check that the submitted data is correct.",
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the error translation handlers to ``app``."""

    @app.exception_handler(TaskValidationError)
    async def task_validation_handler(request: Request, exc: TaskValidationError):
        """Field validation failures with per-field detail."""
        logger.warning(f"Validation error for {request.method} {request.url}: {exc}")

        sub_errors = [
            ApiSubError(
                object=exc.object_name,
                field=violation.field,
                rejected_value=_json_safe(violation.rejected_value),
                message=violation.message,
            )
            for violation in exc.violations
        ]
        return error_response(
            status.HTTP_400_BAD_REQUEST,
            "Validation failed for the submitted fields",
            debug_message="One or more fields do not meet the validation rules",
            sub_errors=sub_errors,
        )

    @app.exception_handler(TaskOutcomeError)
    async def task_outcome_handler(request: Request, exc: TaskOutcomeError):
        """Not-found and duplicate-title outcomes."""
        outcome = exc.outcome
        status_code = OUTCOME_STATUS[outcome.kind]
        logger.warning(f"HTTP {status_code}: {outcome.message} for {request.method} {request.url}")

        return error_response(
            status_code,
            outcome.message or HTTPStatus(status_code).phrase,
            debug_message=f"Task operation ended with outcome '{outcome.kind.value}'",
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        """Malformed bodies and missing or mistyped parameters."""
        logger.warning(f"Request validation error for {request.method} {request.url}: {exc.errors()}")

        json_errors = [error for error in exc.errors() if error.get("type") == "json_invalid"]
        if json_errors:
            return error_response(
                status.HTTP_400_BAD_REQUEST,
                "Could not read the request body. Check that the JSON is well formed.",
                debug_message=f"Invalid JSON: {json_errors[0].get('msg')}",
            )

        return error_response(
            status.HTTP_400_BAD_REQUEST,
            "Invalid request parameters or body",
            debug_message="One or more request values are missing or have the wrong type",
            sub_errors=_sub_errors_from_request(exc),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Unknown routes, unsupported methods and other HTTP errors."""
        logger.warning(f"HTTP {exc.status_code}: {exc.detail} for {request.method} {request.url}")

        phrase = HTTPStatus(exc.status_code).phrase
        headers = getattr(exc, "headers", None)

        if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
            allowed = (headers or {}).get("Allow", "none")
            return error_response(
                exc.status_code,
                f"HTTP method '{request.method}' is not supported for this endpoint. Supported methods: {allowed}",
                debug_message=str(exc.detail),
                headers=headers,
            )

        if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == phrase:
            return error_response(
                exc.status_code,
                f"Endpoint '{request.method} {request.url.path}' not found",
                debug_message="Check that the URL and HTTP method are correct",
                headers=headers,
            )

        return error_response(exc.status_code, str(exc.detail), debug_message=phrase, headers=headers)

    @app.exception_handler(TaskNotFoundError)
    async def store_not_found_handler(request: Request, exc: TaskNotFoundError):
        """A task vanished between the use-case lookup and the write."""
        logger.warning(f"Task {exc.task_id} disappeared during {request.method} {request.url}")

        return error_response(
            status.HTTP_404_NOT_FOUND,
            str(exc),
            debug_message="The task was removed while the request was being processed",
        )

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        """Store constraint violations."""
        status_code, message = classify_integrity_error(exc)
        logger.warning(f"Integrity error for {request.method} {request.url}: {exc.orig}")

        return error_response(status_code, message, debug_message=str(exc.orig))

    @app.exception_handler(OperationalError)
    async def operational_error_handler(request: Request, exc: OperationalError):
        """Store unreachable or failing at the connection level."""
        logger.error(f"Task store unavailable for {request.method} {request.url}: {exc.orig}", exc_info=True)

        return error_response(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            UNAVAILABLE_MESSAGE,
            debug_message="Database access error",
        )

    @app.exception_handler(DBAPIError)
    async def dbapi_error_handler(request: Request, exc: DBAPIError):
        """Other driver errors: 503 when the connection was lost, 500 otherwise."""
        logger.error(f"Database error for {request.method} {request.url}: {exc.orig}", exc_info=True)

        if exc.connection_invalidated:
            return error_response(
                status.HTTP_503_SERVICE_UNAVAILABLE,
                UNAVAILABLE_MESSAGE,
                debug_message="Database connection lost",
            )
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            GENERIC_ERROR_MESSAGE,
            debug_message="Unexpected database error",
        )

    @app.exception_handler(StoreUnavailableError)
    async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
        logger.error(f"Task store unavailable for {request.method} {request.url}: {exc}")

        return error_response(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            UNAVAILABLE_MESSAGE,
            debug_message=str(exc),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions without echoing their detail."""
        logger.error(
            f"Unexpected error for {request.method} {request.url}: {str(exc)}",
            exc_info=True,
        )

        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            GENERIC_ERROR_MESSAGE,
            debug_message="See server logs for details",
        )
