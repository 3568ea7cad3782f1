from fastapi import HTTPException, status

from application.dtos.errors import AppError

_STATUS_BY_CATEGORY = {
    "validation": status.HTTP_400_BAD_REQUEST,
    "unauthenticated": status.HTTP_401_UNAUTHORIZED,
    "not_found": status.HTTP_404_NOT_FOUND,
    "conflict": status.HTTP_409_CONFLICT,
    "write_conflict": status.HTTP_409_CONFLICT,
    "payload_too_large": status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
    "invalid_media": status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
    "metadata_write_failed": status.HTTP_502_BAD_GATEWAY,
    "storage_unavailable": status.HTTP_503_SERVICE_UNAVAILABLE,
    "quota_exceeded": status.HTTP_507_INSUFFICIENT_STORAGE,
}

RETRY_AFTER_SECONDS = "1"


def _map_app_error_to_http_exception(error: AppError) -> HTTPException:
    """Map application layer errors to appropriate HTTP exceptions."""
    status_code = _STATUS_BY_CATEGORY.get(error.category)
    if status_code is None:
        # Unknown error category
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        )

    headers = None
    if status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    elif error.retryable:
        headers = {"Retry-After": RETRY_AFTER_SECONDS}

    return HTTPException(
        status_code=status_code,
        detail={"error": error.category, "message": error.message},
        headers=headers,
    )
