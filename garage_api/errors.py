"""
Problem-style errors shared by every endpoint.

Every error body has the shape ``{type, title, detail, instance?}`` so
clients can branch on the stable ``type`` tag.
"""
from contextlib import contextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

logger = structlog.get_logger(__name__)


class ProblemError(Exception):
    """Base class for errors rendered as a problem body."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    type: str = "internal_error"
    title: str = "Internal Server Error"

    def __init__(
        self,
        detail: str,
        instance: Optional[str] = None,
        type: Optional[str] = None,
        title: Optional[str] = None,
    ):
        super().__init__(detail)
        self.detail = detail
        self.instance = instance
        if type is not None:
            self.type = type
        if title is not None:
            self.title = title

    def to_dict(self) -> dict:
        body = {"type": self.type, "title": self.title, "detail": self.detail}
        if self.instance:
            body["instance"] = self.instance
        return body


class ValidationProblem(ProblemError):
    status_code = status.HTTP_400_BAD_REQUEST
    type = "validation_error"
    title = "Validation Error"


class BadRequestProblem(ProblemError):
    status_code = status.HTTP_400_BAD_REQUEST
    type = "bad_request"
    title = "Bad Request"


class UnauthorizedProblem(ProblemError):
    status_code = status.HTTP_401_UNAUTHORIZED
    type = "unauthorized"
    title = "Unauthorized"


class NotFoundProblem(ProblemError):
    """Missing and inaccessible records are reported identically."""

    status_code = status.HTTP_404_NOT_FOUND
    type = "not_found"
    title = "Not Found"


class ConflictProblem(ProblemError):
    status_code = status.HTTP_409_CONFLICT
    type = "conflict"
    title = "Conflict"


class RateLimitProblem(ProblemError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    type = "rate_limit_error"
    title = "Rate Limit Exceeded"


class InternalProblem(ProblemError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    type = "internal_error"
    title = "Internal Server Error"


def vehicle_not_found(instance: Optional[str] = None) -> NotFoundProblem:
    return NotFoundProblem(
        "Vehicle not found or you don't have access to it",
        instance=instance,
        type="vehicle_not_found",
        title="Vehicle Not Found",
    )


def booking_not_found(instance: Optional[str] = None) -> NotFoundProblem:
    return NotFoundProblem(
        "Booking not found or you don't have access to it",
        instance=instance,
        type="booking_not_found",
        title="Booking Not Found",
    )


@contextmanager
def problem_boundary(detail: str, instance: Optional[str] = None):
    """
    Convert anything that is not already a problem into a generic 500.

    The underlying message is logged, never returned to the client.
    """
    try:
        yield
    except ProblemError:
        raise
    except Exception as exc:
        logger.exception("request_failed", detail=detail, instance=instance, error=str(exc))
        raise InternalProblem(detail, instance=instance) from exc


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    message = first.get("msg", "Invalid value")
    if location:
        return f"{'.'.join(location)}: {message}"
    return message


async def problem_handler(request: Request, exc: ProblemError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problem = ValidationProblem(_first_validation_message(exc), instance=request.url.path)
    return JSONResponse(status_code=problem.status_code, content=problem.to_dict())


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        problem: ProblemError = UnauthorizedProblem(str(exc.detail))
    elif exc.status_code == status.HTTP_404_NOT_FOUND:
        problem = NotFoundProblem(str(exc.detail))
    else:
        problem = ProblemError(str(exc.detail), type="http_error", title="HTTP Error")
        problem.status_code = exc.status_code
    return JSONResponse(status_code=exc.status_code, content=problem.to_dict(), headers=exc.headers)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_exception", path=request.url.path, error=str(exc))
    problem = InternalProblem("An unexpected error occurred")
    return JSONResponse(status_code=problem.status_code, content=problem.to_dict())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ProblemError, problem_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
