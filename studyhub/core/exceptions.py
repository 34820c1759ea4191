"""
Domain error taxonomy.

Services raise these; the API layer renders them through a single
exception handler (see ``studyhub.main``). None of them depend on FastAPI,
so services and the store can be exercised without an HTTP stack.
"""
from typing import Any, Dict, Optional

from studyhub.core.error_codes import ErrorCode


class AppError(Exception):
    """Base class for every error surfaced to API callers."""

    status_code: int = 500
    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR
    default_message: str = "Internal server error"

    def __init__(
        self,
        user_message: Optional[str] = None,
        *,
        error_code: Optional[ErrorCode] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.user_message = user_message or self.default_message
        if error_code is not None:
            self.error_code = error_code
        self.details = details
        super().__init__(self.user_message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_code": self.error_code.value,
            "user_message": self.user_message,
            "details": self.details,
        }


class ValidationFailed(AppError):
    status_code = 422
    error_code = ErrorCode.VALIDATION_ERROR
    default_message = "Invalid request data"


class Unauthenticated(AppError):
    """
    Missing or invalid bearer credential.

    ``reason`` is either ``"missing"`` or ``"invalid"``. It is only exposed
    through the ``WWW-Authenticate`` header, never in the body.
    """

    status_code = 401
    error_code = ErrorCode.UNAUTHORIZED
    default_message = "Authentication required"

    def __init__(self, reason: str = "missing"):
        super().__init__()
        self.reason = reason

    @property
    def www_authenticate(self) -> str:
        if self.reason == "invalid":
            return 'Bearer error="invalid_token"'
        return "Bearer"


class InvalidCredentials(AppError):
    status_code = 401
    error_code = ErrorCode.INVALID_CREDENTIALS
    default_message = "Invalid email or password"


class Forbidden(AppError):
    status_code = 403
    error_code = ErrorCode.FORBIDDEN
    default_message = "You do not have permission to perform this action"


class NotFound(AppError):
    status_code = 404
    error_code = ErrorCode.NOT_FOUND
    default_message = "Resource not found"


class Conflict(AppError):
    status_code = 409
    error_code = ErrorCode.CONFLICT
    default_message = "The resource was modified concurrently, try again"


class InvalidCode(AppError):
    status_code = 400
    error_code = ErrorCode.INVALID_CODE
    default_message = "Invalid or expired verification code"


class CodeExpired(AppError):
    status_code = 400
    error_code = ErrorCode.CODE_EXPIRED
    default_message = "Verification code has expired. Please request a new one."


class NotVerified(AppError):
    status_code = 400
    error_code = ErrorCode.NOT_VERIFIED
    default_message = "Verification code not confirmed for this email"


class VerificationExpired(AppError):
    status_code = 400
    error_code = ErrorCode.VERIFICATION_EXPIRED
    default_message = "Verification has expired. Please verify the code again."


class RateLimited(AppError):
    status_code = 429
    error_code = ErrorCode.RATE_LIMITED
    default_message = "Too many requests"


class TransientUnavailable(AppError):
    """The document store or another collaborator could not be reached."""

    status_code = 503
    error_code = ErrorCode.SERVICE_UNAVAILABLE
    default_message = "Service temporarily unavailable, please retry"


class Internal(AppError):
    pass
