"""Tests for domain exceptions (error_code, message, details)."""

from app.domain.exceptions import (
    AccountLockedException,
    ConflictException,
    ForbiddenException,
    InternalException,
    InvalidCodeException,
    InvalidCredentialsException,
    InvalidTokenException,
    KeystoneException,
    ProvisioningTimeoutException,
    ResourceNotFoundException,
    StoreUnavailableException,
    TwoFactorStateException,
    ValidationException,
)


def test_keystone_exception_default_error_code() -> None:
    """Base KeystoneException uses class name as error_code when not provided."""
    exc = KeystoneException("Something failed")
    assert exc.message == "Something failed"
    assert exc.error_code == "KeystoneException"
    assert exc.details == {}


def test_keystone_exception_to_dict() -> None:
    exc = KeystoneException("Oops", error_code="CUSTOM", details={"key": "value"})
    assert exc.to_dict() == {
        "error_code": "CUSTOM",
        "message": "Oops",
        "details": {"key": "value"},
    }
    assert "details" not in KeystoneException("Plain").to_dict()


def test_validation_exception() -> None:
    """ValidationException sets VALIDATION_ERROR and optional field in details."""
    exc = ValidationException("Invalid format", field="email")
    assert exc.error_code == "VALIDATION_ERROR"
    assert exc.details == {"field": "email"}
    assert ValidationException("Invalid").details == {}


def test_credentials_message_is_fixed() -> None:
    """Unknown email and wrong password share one message."""
    exc = InvalidCredentialsException()
    assert exc.error_code == "INVALID_CREDENTIALS"
    assert exc.message == "Invalid email or password"


def test_account_locked_carries_remaining_minutes() -> None:
    exc = AccountLockedException(remaining_minutes=12)
    assert exc.error_code == "ACCOUNT_LOCKED"
    assert exc.remaining_minutes == 12
    assert exc.details == {"remaining_minutes": 12}
    assert "12 minute" in exc.message


def test_resource_not_found() -> None:
    exc = ResourceNotFoundException("Company membership", "co_1")
    assert exc.error_code == "RESOURCE_NOT_FOUND"
    assert exc.message == "Company membership not found: co_1"
    assert exc.details == {"resource_type": "Company membership", "resource_id": "co_1"}


def test_internal_exception_keeps_reason_out_of_message() -> None:
    exc = InternalException("provider timeout at 10.0.0.3")
    assert exc.message == "An unexpected error occurred"
    assert exc.details == {"reason": "provider timeout at 10.0.0.3"}
    assert InternalException().details == {}


def test_error_codes() -> None:
    assert ConflictException().error_code == "CONFLICT"
    assert InvalidCodeException().error_code == "INVALID_CODE"
    assert InvalidTokenException().error_code == "INVALID_TOKEN"
    assert ForbiddenException().error_code == "FORBIDDEN"
    assert TwoFactorStateException("x").error_code == "TWO_FACTOR_STATE"
    assert StoreUnavailableException("insert").error_code == "STORE_UNAVAILABLE"
    timeout = ProvisioningTimeoutException("id_1", 3)
    assert timeout.error_code == "PROVISIONING_TIMEOUT"
    assert timeout.details == {"identity_id": "id_1", "attempts": 3}
