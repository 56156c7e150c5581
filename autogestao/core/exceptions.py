"""Custom exception classes for structured error handling.

The four request-facing codes mirror the authorization taxonomy:
BAD_REQUEST (no/invalid tenant context), UNAUTHORIZED (no session or bad
API key), FORBIDDEN (insufficient role) and NOT_FOUND (absent or outside
the tenant scope).
"""

from typing import Any


class AutogestaoError(Exception):
    """Base exception for all AutoGestão errors."""

    def __init__(self, code: str, message: str, status_code: int = 500) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {"error": {"code": self.code, "message": self.message}}


class BadRequestError(AutogestaoError):
    def __init__(self, message: str = "Invalid request") -> None:
        super().__init__(code="BAD_REQUEST", message=message, status_code=400)


class UnauthorizedError(AutogestaoError):
    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(code="UNAUTHORIZED", message=message, status_code=401)


class ForbiddenError(AutogestaoError):
    def __init__(
        self, message: str = "You do not have permission to perform this action"
    ) -> None:
        super().__init__(code="FORBIDDEN", message=message, status_code=403)


class NotFoundError(AutogestaoError):
    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(code="NOT_FOUND", message=message, status_code=404)


class TenantContextRequiredError(BadRequestError):
    def __init__(
        self, message: str = "This operation requires a valid tenant context"
    ) -> None:
        super().__init__(message=message)


class InvalidAPIKeyError(UnauthorizedError):
    def __init__(self, message: str = "Invalid API key") -> None:
        super().__init__(message=message)


class InvalidCredentialsError(UnauthorizedError):
    def __init__(self, message: str = "Invalid credentials") -> None:
        super().__init__(message=message)


class InvalidTokenError(BadRequestError):
    def __init__(self, message: str = "Invalid or expired token") -> None:
        super().__init__(message=message)


class TenantNotFoundError(NotFoundError):
    def __init__(self, message: str = "Tenant not found") -> None:
        super().__init__(message=message)


class VehicleNotFoundError(NotFoundError):
    def __init__(self, message: str = "Vehicle not found") -> None:
        super().__init__(message=message)


class ImageNotFoundError(NotFoundError):
    def __init__(self, message: str = "Image not found") -> None:
        super().__init__(message=message)


class ApiKeyNotFoundError(NotFoundError):
    def __init__(self, message: str = "API key not found") -> None:
        super().__init__(message=message)


class WebhookNotFoundError(NotFoundError):
    def __init__(self, message: str = "Webhook not found") -> None:
        super().__init__(message=message)


class DatabaseConnectionError(AutogestaoError):
    def __init__(self, message: str = "Database connection failed") -> None:
        super().__init__(code="DATABASE_ERROR", message=message, status_code=503)


class StorageError(AutogestaoError):
    def __init__(self, message: str = "Failed to store file") -> None:
        super().__init__(code="STORAGE_ERROR", message=message, status_code=500)
