"""Identity domain entity.

Represents a person's account profile together with its derived lockout
and two-factor state, independent of persistence.
"""

import math
from dataclasses import dataclass
from datetime import datetime

from app.domain.enums import TwoFactorState
from app.domain.exceptions import ValidationException


@dataclass
class IdentityEntity:
    """Domain entity for an identity (SRP: account rules separate from persistence).

    The password itself is owned by the identity provider; this entity only
    carries the profile, lockout counters and 2FA fields. Lockout state is
    computed from failed_login_attempts and locked_until.
    """

    id: str
    email: str
    full_name: str
    role: str = "member"
    avatar_url: str | None = None
    is_active: bool = True
    is_two_factor_enabled: bool = False
    two_factor_secret: str | None = None
    two_factor_secret_created_at: datetime | None = None
    two_factor_confirmed_at: datetime | None = None
    failed_login_attempts: int = 0
    locked_until: datetime | None = None
    last_failed_login: datetime | None = None
    last_login: datetime | None = None
    created_at: datetime | None = None

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Validate identity rules. Raises ValidationException if invalid."""
        if not self.id:
            raise ValidationException("Identity ID is required", field="id")
        if not self.email or "@" not in self.email:
            raise ValidationException("A valid email is required", field="email")

    def is_locked(self, now: datetime) -> bool:
        """Return True while locked_until lies in the future."""
        return self.locked_until is not None and self.locked_until > now

    def lock_expired(self, now: datetime) -> bool:
        """Return True when a lock was set and its window has elapsed."""
        return self.locked_until is not None and self.locked_until <= now

    def remaining_lock_minutes(self, now: datetime) -> int:
        """Whole minutes (rounded up, at least 1) until the lock expires; 0 if unlocked."""
        if not self.is_locked(now):
            return 0
        assert self.locked_until is not None
        seconds = (self.locked_until - now).total_seconds()
        return max(1, math.ceil(seconds / 60))

    @property
    def two_factor_state(self) -> TwoFactorState:
        if self.is_two_factor_enabled:
            return TwoFactorState.ENABLED
        if self.two_factor_secret:
            return TwoFactorState.PROVISIONING
        return TwoFactorState.DISABLED
