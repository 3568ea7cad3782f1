"""Error handling for API routes.

Use cases report failures as ``Failure(AppError)``. Domain exceptions that
still escape (from dependencies such as session lookup, or from a use case
bug) are mapped onto the same error categories, so every failure reaches the
client as ``{"detail": {"error": <category>, "message": ...}}``.
"""

import functools
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, TypeVar

import structlog
from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from returns.result import Failure, Success

from application.dtos.errors import AppError
from domain.exceptions import (
    ConflictError,
    DomainError,
    QuotaExceededError,
    UnauthenticatedError,
    ValidationError,
    WriteConflictError,
)
from interfaces.api.routes.helpers import _map_app_error_to_http_exception

if TYPE_CHECKING:
    from typing import Any

logger = structlog.get_logger()

T_co = TypeVar("T_co")

# Most specific first
_CATEGORY_BY_EXCEPTION: list[tuple[type[DomainError], str]] = [
    (ValidationError, "validation"),
    (UnauthenticatedError, "unauthenticated"),
    (WriteConflictError, "write_conflict"),
    (ConflictError, "conflict"),
    (QuotaExceededError, "quota_exceeded"),
]


def app_error_from_exception(exc: DomainError) -> AppError:
    """Translate an escaped domain exception into the category a use case would report."""
    for exc_type, category in _CATEGORY_BY_EXCEPTION:
        if isinstance(exc, exc_type):
            return AppError(category, str(exc))
    # InfrastructureError and anything unclassified
    return AppError("storage_unavailable", "Service temporarily unavailable")


def _log_failure(error: AppError, http_error: HTTPException, function: str) -> None:
    if http_error.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.warning(
            "use_case_failed",
            category=error.category,
            status_code=http_error.status_code,
            function=function,
            error=error.message,
        )
    else:
        logger.info(
            "use_case_rejected",
            category=error.category,
            status_code=http_error.status_code,
            function=function,
        )


def handle_use_case_errors(
    func: Callable[..., Awaitable[T_co]],
) -> Callable[..., Awaitable[T_co]]:
    """Turn a route returning a use-case ``Result`` into a plain FastAPI handler.

    - ``Success`` is unwrapped and returned as the response body
    - ``Failure(AppError)`` becomes an HTTPException via the category table
    - escaped ``DomainError``s are categorised the same way
    - anything else is logged and reported as 500
    """

    @functools.wraps(func)
    async def wrapper(*args: "Any", **kwargs: "Any") -> T_co:  # noqa: ANN401
        try:
            result = await func(*args, **kwargs)
        except HTTPException:
            raise
        except DomainError as exc:
            error = app_error_from_exception(exc)
            http_error = _map_app_error_to_http_exception(error)
            logger.exception(
                "domain_error_escaped_use_case",
                category=error.category,
                function=func.__name__,
            )
            raise http_error from exc
        except Exception as exc:
            logger.exception(
                "unexpected_error",
                error=str(exc),
                error_type=type(exc).__name__,
                function=func.__name__,
            )
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Internal server error",
            ) from exc

        if isinstance(result, Success):
            return result.unwrap()

        if isinstance(result, Failure):
            error = result.failure()
            http_error = _map_app_error_to_http_exception(error)
            _log_failure(error, http_error, func.__name__)
            raise http_error

        logger.error("unexpected_result_type", function=func.__name__, result_type=type(result).__name__)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unexpected result type",
        )

    return wrapper


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """App-level handler for domain exceptions raised outside decorated routes."""
    error = app_error_from_exception(exc)
    http_error = _map_app_error_to_http_exception(error)
    logger.exception(
        "domain_error_unhandled",
        path=request.url.path,
        category=error.category,
    )
    return JSONResponse(
        status_code=http_error.status_code,
        content={"detail": http_error.detail},
        headers=http_error.headers,
    )
