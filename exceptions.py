"""
Custom application exceptions.
"""

from fastapi import HTTPException, status


class AppException(HTTPException):
    """Base application exception."""

    def __init__(self, detail, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR):
        super().__init__(status_code=status_code, detail=detail)


class NotFoundException(AppException):
    """Resource not found exception."""

    def __init__(self, detail: str = "Resource not found"):
        super().__init__(detail=detail, status_code=status.HTTP_404_NOT_FOUND)


class BadRequestException(AppException):
    """Bad request exception."""

    def __init__(self, detail: str = "Bad request"):
        super().__init__(detail=detail, status_code=status.HTTP_400_BAD_REQUEST)


class ModerationRejectedException(AppException):
    """The topic was refused by content moderation."""

    def __init__(self, reason: str, message: str = "Topic rejected by content moderation."):
        super().__init__(
            detail={"reason": reason, "message": message},
            status_code=422,
        )
        self.reason = reason


class ProviderError(Exception):
    """An external provider (script, narration, visuals, ...) failed."""
