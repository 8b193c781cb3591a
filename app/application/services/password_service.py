"""Password flows: forgot (token issue), reset (token redeem), authenticated change."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from app.application.dtos.identity import RequestMetadata
from app.application.interfaces.repositories import (
    IIdentityRepository,
    IPasswordResetTokenRepository,
)
from app.application.interfaces.services import IIdentityProvider, IPasswordHasher
from app.application.services.hash_service import HashService
from app.application.services.notification_service import (
    NotificationService,
    redact_email,
)
from app.application.services.security_event_log import SecurityEventLog
from app.domain.entities.identity import IdentityEntity
from app.domain.exceptions import (
    InternalException,
    InvalidCredentialsException,
    InvalidTokenException,
    ValidationException,
)
from app.domain.value_objects.core import PasswordPolicy
from app.shared.enums import ProviderErrorKind, SecurityEventType
from app.shared.telemetry.tracing import traced
from app.shared.utils.datetime import ensure_utc, utc_now

logger = logging.getLogger(__name__)

RESET_MIN_PASSWORD_LENGTH = 8


class PasswordService:
    """Issues and redeems single-use reset tokens and changes passwords."""

    def __init__(
        self,
        identities: IIdentityRepository,
        reset_tokens: IPasswordResetTokenRepository,
        provider: IIdentityProvider,
        password_hasher: IPasswordHasher,
        hasher: HashService,
        events: SecurityEventLog,
        notifier: NotificationService,
        *,
        password_policy: PasswordPolicy | None = None,
        reset_token_ttl_minutes: int = 60,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.identities = identities
        self.reset_tokens = reset_tokens
        self.provider = provider
        self.password_hasher = password_hasher
        self.hasher = hasher
        self.events = events
        self.notifier = notifier
        self.password_policy = password_policy or PasswordPolicy()
        self.reset_token_ttl_minutes = reset_token_ttl_minutes
        self.clock = clock

    @traced("auth.forgot_password")
    async def forgot_password(
        self, email: str, metadata: RequestMetadata | None = None
    ) -> None:
        """Issue a reset token and email it. Unknown emails succeed silently."""
        email = email.strip().lower()
        identity = await self.identities.get_by_email(email)
        if identity is None:
            logger.info("Password reset requested for unknown email %s", redact_email(email))
            return
        raw_token = self.hasher.generate_token()
        expires_at = self.clock() + timedelta(minutes=self.reset_token_ttl_minutes)
        await self.reset_tokens.create(
            identity.id, self.hasher.hash_token(raw_token), expires_at
        )
        await self.events.record(
            SecurityEventType.PASSWORD_RESET_REQUESTED,
            success=True,
            identity_id=identity.id,
            metadata=metadata,
        )
        await self.notifier.password_reset(identity, raw_token, self.reset_token_ttl_minutes)

    @traced("auth.reset_password")
    async def reset_password(
        self,
        token: str,
        new_password: str,
        metadata: RequestMetadata | None = None,
    ) -> None:
        """Redeem a reset token and set the new password.

        The token is marked used before the provider is called, so it cannot
        be replayed even if the update fails afterwards.

        Raises:
            ValidationException: New password shorter than 8 characters.
            InvalidTokenException: Token unknown, already used or expired.
            InternalException: Provider rejected the update.
        """
        if len(new_password) < RESET_MIN_PASSWORD_LENGTH:
            raise ValidationException(
                f"Password must be at least {RESET_MIN_PASSWORD_LENGTH} characters",
                field="newPassword",
            )
        now = self.clock()
        record = await self.reset_tokens.get_by_hash(self.hasher.hash_token(token))
        reason: str | None = None
        if record is None:
            reason = "unknown_token"
        elif record.used_at is not None:
            reason = "already_used"
        elif (ensure_utc(record.expires_at) or record.expires_at) <= now:
            reason = "expired"
        elif not await self.reset_tokens.mark_used(record.id, now):
            reason = "already_used"
        if reason is not None:
            await self.events.record(
                SecurityEventType.PASSWORD_RESET_FAILED,
                success=False,
                identity_id=record.identity_id if record else None,
                metadata=metadata,
                reason=reason,
            )
            raise InvalidTokenException()
        assert record is not None

        result = await self.provider.update_password(record.identity_id, new_password)
        if not result.ok:
            await self.events.record(
                SecurityEventType.PASSWORD_RESET_FAILED,
                success=False,
                identity_id=record.identity_id,
                metadata=metadata,
                reason="provider_error",
            )
            logger.error(
                "Provider password update failed for %s: %s (%s)",
                record.identity_id,
                result.error,
                result.message,
            )
            raise InternalException("password update failed")

        await self._mirror_password_hash(record.identity_id, new_password)
        await self.events.record(
            SecurityEventType.PASSWORD_RESET,
            success=True,
            identity_id=record.identity_id,
            metadata=metadata,
        )

    @traced("auth.change_password")
    async def change_password(
        self,
        identity: IdentityEntity,
        current_password: str,
        new_password: str,
        metadata: RequestMetadata | None = None,
    ) -> None:
        """Re-verify the current password with the provider, then set the new one."""
        self.password_policy.enforce(new_password, field="newPassword")
        verified = await self.provider.verify_password(identity.email, current_password)
        if not verified.ok or verified.value != identity.id:
            if verified.error in (
                None,
                ProviderErrorKind.INVALID_CREDENTIALS,
                ProviderErrorKind.NOT_FOUND,
            ):
                await self.events.record(
                    SecurityEventType.PASSWORD_CHANGE_FAILED,
                    success=False,
                    identity_id=identity.id,
                    metadata=metadata,
                    reason="invalid_current_password",
                )
                raise InvalidCredentialsException("Current password is incorrect")
            raise InternalException("identity provider unavailable")

        result = await self.provider.update_password(identity.id, new_password)
        if not result.ok:
            await self.events.record(
                SecurityEventType.PASSWORD_CHANGE_FAILED,
                success=False,
                identity_id=identity.id,
                metadata=metadata,
                reason="provider_error",
            )
            raise InternalException("password update failed")

        await self._mirror_password_hash(identity.id, new_password)
        await self.events.record(
            SecurityEventType.PASSWORD_CHANGED,
            success=True,
            identity_id=identity.id,
            metadata=metadata,
        )
        await self.notifier.password_changed(identity)

    async def _mirror_password_hash(self, identity_id: str, password: str) -> None:
        """Best-effort local hash mirror for systems that read it."""
        try:
            password_hash = await self.password_hasher.hash(password)
            await self.identities.set_password_hash(identity_id, password_hash)
        except Exception:
            logger.warning("Local password hash mirror failed for %s", identity_id, exc_info=True)
