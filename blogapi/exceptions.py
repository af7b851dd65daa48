from typing import Optional

from fastapi import HTTPException, status


class AppError(HTTPException):
    """Base class for errors rendered as ``{"success": false, "detail": ...}``."""
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Bad request"

    def __init__(self, detail: Optional[str] = None, headers: Optional[dict] = None):
        super().__init__(
            status_code=type(self).status_code,
            detail=detail or type(self).detail,
            headers=headers,
        )


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Invalid request"


class CredentialsError(ValidationError):
    # Never says which of the identifier or the password was wrong
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Failed to login"


class MissingTokenError(ValidationError):
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Not authenticated"


class AuthorizationError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    detail = "Insufficient permissions"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "Unable to find user"


class TokenInvalidError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    detail = "Token is expired or has been revoked"


class TokenExpiredError(TokenInvalidError):
    pass


class IntegrityError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "An unexpected error occurred"
