"""Domain errors raised by services and mapped to HTTP responses in main."""
from fastapi import status


class CourseHubError(Exception):
    """Base class for errors a caller can act on."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CourseHubError):
    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(CourseHubError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(CourseHubError):
    status_code = status.HTTP_404_NOT_FOUND


class FeatureUnavailableError(CourseHubError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


def require_fields(data: dict, fields: list[str]) -> None:
    """Raise ValidationError naming every field in `fields` missing from `data`.

    Empty strings and None count as missing; 0 and False do not.
    """
    missing = [f for f in fields if data.get(f) is None or data.get(f) == ""]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")
