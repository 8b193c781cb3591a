"""Credential and lockout guard: password login with brute-force lockout.

Per identity: Unlocked -> (N consecutive failures) -> Locked(until=now+window)
-> (window elapses) -> Unlocked. A locked account is rejected before the
identity provider is consulted, even with the correct password.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from app.application.dtos.auth import SessionResult, TwoFactorChallenge
from app.application.dtos.identity import RequestMetadata
from app.application.interfaces.repositories import IIdentityRepository
from app.application.interfaces.services import IIdentityProvider
from app.application.services.notification_service import redact_email
from app.application.services.security_event_log import SecurityEventLog
from app.application.services.token_issuer import TokenIssuer
from app.domain.entities.identity import IdentityEntity
from app.domain.exceptions import (
    AccountLockedException,
    ForbiddenException,
    InternalException,
    InvalidCredentialsException,
)
from app.shared.enums import ProviderErrorKind, SecurityEventType
from app.shared.telemetry.tracing import traced
from app.shared.utils.datetime import utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LockoutPolicy:
    """Failed-attempt threshold and lock duration."""

    max_failed_attempts: int = 5
    window_minutes: int = 30

    @property
    def window(self) -> timedelta:
        return timedelta(minutes=self.window_minutes)


class CredentialGuard:
    """Verifies email/password logins and enforces temporary lockout."""

    def __init__(
        self,
        identities: IIdentityRepository,
        provider: IIdentityProvider,
        issuer: TokenIssuer,
        events: SecurityEventLog,
        policy: LockoutPolicy | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.identities = identities
        self.provider = provider
        self.issuer = issuer
        self.events = events
        self.policy = policy or LockoutPolicy()
        self.clock = clock

    @traced("auth.login")
    async def login(
        self,
        email: str,
        password: str,
        metadata: RequestMetadata | None = None,
    ) -> SessionResult | TwoFactorChallenge:
        """Authenticate and return a session, or a step-up challenge when 2FA is enabled.

        Raises:
            AccountLockedException: Account is locked (no credential check performed).
            InvalidCredentialsException: Unknown email or wrong password (same message).
            ForbiddenException: Credentials valid but the account is inactive or
                its email address is not confirmed (not counted toward lockout).
            InternalException: The identity provider failed unexpectedly.
        """
        email = email.strip().lower()
        now = self.clock()
        identity = await self.identities.get_by_email(email)

        if identity is not None:
            if identity.is_locked(now):
                remaining = identity.remaining_lock_minutes(now)
                await self.events.record(
                    SecurityEventType.LOGIN_BLOCKED,
                    success=False,
                    identity_id=identity.id,
                    metadata=metadata,
                    remaining_minutes=remaining,
                )
                raise AccountLockedException(remaining)
            if identity.lock_expired(now):
                await self.identities.reset_failed_attempts(identity.id)
                identity.failed_login_attempts = 0
                identity.locked_until = None
                await self.events.record(
                    SecurityEventType.ACCOUNT_UNLOCKED,
                    success=True,
                    identity_id=identity.id,
                    metadata=metadata,
                    reason="lock_expired",
                )

        result = await self.provider.verify_password(email, password)
        if not result.ok:
            match result.error:
                case ProviderErrorKind.INVALID_CREDENTIALS | ProviderErrorKind.NOT_FOUND:
                    await self._record_failure(identity, email, now, metadata)
                    raise InvalidCredentialsException()
                case ProviderErrorKind.EMAIL_NOT_CONFIRMED:
                    # the provider only reports this after the password matched
                    await self.events.record(
                        SecurityEventType.LOGIN_FAILED,
                        success=False,
                        identity_id=identity.id if identity else None,
                        metadata=metadata,
                        email=email,
                        reason="email_not_confirmed",
                    )
                    raise ForbiddenException("Email address is not confirmed")
                case _:
                    logger.error(
                        "Identity provider error during login for %s: %s (%s)",
                        redact_email(email),
                        result.error,
                        result.message,
                    )
                    raise InternalException("identity provider unavailable")

        if identity is None and result.value:
            identity = await self.identities.get_by_id(result.value)
        if identity is None:
            logger.error("Provider accepted %s but no profile exists", redact_email(email))
            raise ForbiddenException("Account is not available")
        if not identity.is_active:
            raise ForbiddenException("Account is deactivated")

        if identity.failed_login_attempts or identity.locked_until is not None:
            await self.identities.reset_failed_attempts(identity.id)
            identity.failed_login_attempts = 0
            identity.locked_until = None
        await self.identities.record_login(identity.id, now)
        identity.last_login = now
        await self.events.record(
            SecurityEventType.LOGIN_SUCCESS,
            success=True,
            identity_id=identity.id,
            metadata=metadata,
        )

        if identity.is_two_factor_enabled:
            await self.events.record(
                SecurityEventType.LOGIN_2FA_REQUIRED,
                success=True,
                identity_id=identity.id,
                metadata=metadata,
            )
            return TwoFactorChallenge(email=identity.email)

        return await self.issuer.issue(identity)

    async def _record_failure(
        self,
        identity: IdentityEntity | None,
        email: str,
        now: datetime,
        metadata: RequestMetadata | None,
    ) -> None:
        """Count a failed attempt and lock the account at the threshold."""
        if identity is None:
            await self.events.record(
                SecurityEventType.LOGIN_FAILED,
                success=False,
                metadata=metadata,
                email=email,
                reason="unknown_email",
            )
            return

        attempts = await self.identities.increment_failed_attempts(identity.id, now)
        if attempts >= self.policy.max_failed_attempts:
            until = now + self.policy.window
            await self.identities.lock(identity.id, until)
            await self.events.record(
                SecurityEventType.ACCOUNT_LOCKED,
                success=False,
                identity_id=identity.id,
                metadata=metadata,
                attempts=attempts,
                locked_until=until.isoformat(),
            )
            logger.warning(
                "Account %s locked after %d failed attempts", identity.id, attempts
            )
        else:
            await self.events.record(
                SecurityEventType.LOGIN_FAILED,
                success=False,
                identity_id=identity.id,
                metadata=metadata,
                attempts=attempts,
            )
