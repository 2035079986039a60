from typing import Any, Optional


class AppError(Exception):
    """Application error carrying a machine code and the HTTP status to answer with."""

    def __init__(self, message: str, code: str, status: int, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status
        self.details = details


class UserError(AppError):
    def __init__(self, message: str, code: str, details: Optional[Any] = None):
        super().__init__(message, code, 400, details)


class UserAlreadyExistsError(UserError):
    def __init__(self, email: str):
        super().__init__("User with this email already exists", "USER_ALREADY_EXISTS", {"email": email})


class InvalidUserDataError(UserError):
    def __init__(self, details: Any):
        super().__init__("Invalid user data provided", "INVALID_USER_DATA", details)


class RateLimitExceededError(AppError):
    def __init__(self, message: str, retry_after: int):
        super().__init__(message, "RATE_LIMITED", 429, {"retryAfter": retry_after})
        self.retry_after = retry_after


def database_error(error: Exception) -> AppError:
    return AppError("Database operation failed", "DATABASE_ERROR", 500, {"originalError": str(error)})


def unexpected_error(error: Exception) -> AppError:
    return AppError("An unexpected error occurred", "UNKNOWN_ERROR", 500, {"originalError": str(error)})
