"""Shared enumerations for the identity service.

Cross-cutting enums used by application and infrastructure (security
event types, identity provider error kinds, subscription status).
Domain-specific enums (e.g. MembershipRole) live in app.domain.enums.
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class SecurityEventType(_ValuesMixin, str, Enum):
    """Security event types appended to the security event log."""

    REGISTER = "register"
    REGISTER_FAILED = "register_failed"
    LOGIN_SUCCESS = "login_success"
    LOGIN_FAILED = "login_failed"
    LOGIN_BLOCKED = "login_blocked"
    ACCOUNT_LOCKED = "account_locked"
    ACCOUNT_UNLOCKED = "account_unlocked"
    LOGIN_2FA_REQUIRED = "login_2fa_required"
    TWO_FACTOR_SETUP = "2fa_setup"
    TWO_FACTOR_ENABLED = "2fa_enabled"
    TWO_FACTOR_ENABLE_FAILED = "2fa_enable_failed"
    TWO_FACTOR_VERIFIED = "2fa_verified"
    TWO_FACTOR_VERIFY_FAILED = "2fa_verify_failed"
    TWO_FACTOR_RECOVERY_CODE_USED = "2fa_recovery_code_used"
    TWO_FACTOR_DISABLED = "2fa_disabled"
    TWO_FACTOR_DISABLE_FAILED = "2fa_disable_failed"
    RECOVERY_CODES_REGENERATED = "recovery_codes_regenerated"
    RECOVERY_CODES_REGENERATE_FAILED = "recovery_codes_regenerate_failed"
    PASSWORD_RESET_REQUESTED = "password_reset_requested"
    PASSWORD_RESET = "password_reset"
    PASSWORD_RESET_FAILED = "password_reset_failed"
    PASSWORD_CHANGED = "password_changed"
    PASSWORD_CHANGE_FAILED = "password_change_failed"
    COMPANY_SWITCHED = "company_switched"
    LOGOUT = "logout"


class ProviderErrorKind(_ValuesMixin, str, Enum):
    """Failure kinds reported by identity provider adapters."""

    DUPLICATE = "duplicate"
    EMAIL_NOT_CONFIRMED = "email_not_confirmed"
    INVALID_CREDENTIALS = "invalid_credentials"
    NOT_FOUND = "not_found"
    UNAVAILABLE = "unavailable"
    UNKNOWN = "unknown"


class SubscriptionStatus(_ValuesMixin, str, Enum):
    """Subscription status for a company's plan."""

    TRIALING = "trialing"
    ACTIVE = "active"
    CANCELED = "canceled"
