from enum import Enum


class ErrorCode(str, Enum):
    # --- Generic ---
    INTERNAL_ERROR = "internal_error"
    VALIDATION_ERROR = "validation_error"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    RATE_LIMITED = "rate_limited"
    SERVICE_UNAVAILABLE = "service_unavailable"

    # --- Accounts ---
    EMAIL_ALREADY_REGISTERED = "email_already_registered"
    INVALID_CREDENTIALS = "invalid_credentials"

    # --- Password reset ---
    INVALID_CODE = "invalid_code"
    CODE_EXPIRED = "code_expired"
    NOT_VERIFIED = "not_verified"
    VERIFICATION_EXPIRED = "verification_expired"

    # --- Uploads ---
    UPLOAD_REJECTED = "upload_rejected"
