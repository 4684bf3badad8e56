class ReviewError(Exception):
    """Base error for review operations."""


class StoreUnavailableError(ReviewError):
    """Raised when the record store is unavailable or not configured."""


class NotFoundError(ReviewError):
    """Raised when the requested record does not exist."""


class AuthorizationError(ReviewError):
    """Raised when the caller's role, ownership or leader status forbids the action."""


class InvalidTransitionError(ReviewError):
    """Raised when a status change is not in the allowed graph."""


class ImmutableRecordError(ReviewError):
    """Raised when a decided (approved or rejected) record would be changed."""


class DuplicateRecommendationError(ReviewError):
    """Raised when the candidate has already been recommended."""


class ValidationError(ReviewError):
    """Raised when a submitted form fails validation before persistence."""
