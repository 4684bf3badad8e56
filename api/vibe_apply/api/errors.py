from fastapi import HTTPException, status

from vibe_apply.services.errors import (
    AuthorizationError,
    DuplicateRecommendationError,
    ImmutableRecordError,
    InvalidTransitionError,
    NotFoundError,
    ReviewError,
    StoreUnavailableError,
    ValidationError,
)

STATUS_BY_ERROR: dict[type[ReviewError], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    AuthorizationError: status.HTTP_403_FORBIDDEN,
    InvalidTransitionError: status.HTTP_409_CONFLICT,
    ImmutableRecordError: status.HTTP_409_CONFLICT,
    DuplicateRecommendationError: status.HTTP_409_CONFLICT,
    ValidationError: status.HTTP_422_UNPROCESSABLE_CONTENT,
    StoreUnavailableError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def to_http_exception(exc: ReviewError) -> HTTPException:
    for error_type, status_code in STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
