"""Domain exceptions for the identity service.

Defines domain-level exceptions that represent business rule violations.
These exceptions are independent of infrastructure concerns. Presentation
layer maps them to HTTP responses in exception handlers.

Authentication failures (credentials, codes, tokens) carry fixed messages
so responses never reveal whether an account exists.
"""

from typing import Any


class KeystoneException(Exception):
    """Base exception for all application errors.

    All custom exceptions should inherit from this class to allow
    consistent error handling and logging. Presentation layer maps
    these to HTTP responses using message, error_code, and details.

    Attributes:
        message: Human-readable error description (safe to show to clients).
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, remaining_minutes).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable representation for API responses."""
        result: dict[str, Any] = {"error_code": self.error_code, "message": self.message}
        if self.details:
            result["details"] = self.details
        return result


class ValidationException(KeystoneException):
    """Raised when input validation fails (e.g. weak password or bad format)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the validation failure.
            field: Optional field or attribute that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class ConflictException(KeystoneException):
    """Raised when a unique resource already exists (e.g. email or company slug)."""

    def __init__(self, message: str = "Resource already exists") -> None:
        super().__init__(message, "CONFLICT")


class InvalidCredentialsException(KeystoneException):
    """Raised when email/password verification fails.

    The message is identical for unknown emails and wrong passwords.
    """

    def __init__(self, message: str = "Invalid email or password") -> None:
        super().__init__(message, "INVALID_CREDENTIALS")


class InvalidCodeException(KeystoneException):
    """Raised when a TOTP or recovery code does not verify."""

    def __init__(self) -> None:
        super().__init__("Invalid verification code", "INVALID_CODE")


class InvalidTokenException(KeystoneException):
    """Raised for missing, used, expired or malformed tokens (bearer, reset, invitation)."""

    def __init__(self, message: str = "Invalid or expired token") -> None:
        super().__init__(message, "INVALID_TOKEN")


class AccountLockedException(KeystoneException):
    """Raised when a login is attempted while the account is locked out."""

    def __init__(self, remaining_minutes: int) -> None:
        """Initialize with minutes until the lock expires.

        Args:
            remaining_minutes: Whole minutes (rounded up) until login is allowed again.
        """
        super().__init__(
            f"Account is temporarily locked. Try again in {remaining_minutes} minute(s).",
            "ACCOUNT_LOCKED",
            {"remaining_minutes": remaining_minutes},
        )
        self.remaining_minutes = remaining_minutes


class ForbiddenException(KeystoneException):
    """Raised when the identity is inactive or lacks access to the operation."""

    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message, "FORBIDDEN")


class ResourceNotFoundException(KeystoneException):
    """Raised when a requested resource is not found."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        """Initialize with resource type and id.

        Args:
            resource_type: Type of resource (e.g. 'company', 'membership').
            resource_id: The ID that was not found.
        """
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class TwoFactorStateException(KeystoneException):
    """Raised when a 2FA operation is not valid in the current 2FA state."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "TWO_FACTOR_STATE")


class ProvisioningTimeoutException(KeystoneException):
    """Raised when the local profile row could not be provisioned after retries."""

    def __init__(self, identity_id: str, attempts: int) -> None:
        super().__init__(
            "Account setup did not complete. Please try again.",
            "PROVISIONING_TIMEOUT",
            {"identity_id": identity_id, "attempts": attempts},
        )


class StoreUnavailableException(KeystoneException):
    """Raised by repositories on transient store failures (connection, timeout).

    Callers with a retry policy may retry; otherwise it surfaces as 500.
    """

    def __init__(self, operation: str) -> None:
        super().__init__(
            f"Store unavailable during {operation}",
            "STORE_UNAVAILABLE",
            {"operation": operation},
        )


class InternalException(KeystoneException):
    """Raised for unexpected provider or store failures.

    The client-facing message stays generic; specifics go to details and logs.
    """

    def __init__(self, reason: str | None = None) -> None:
        super().__init__(
            "An unexpected error occurred",
            "INTERNAL_ERROR",
            {"reason": reason} if reason else None,
        )
