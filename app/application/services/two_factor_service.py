"""Two-factor authentication lifecycle: setup, enable, step-up verify, disable, recovery codes.

States: DISABLED -> PROVISIONING (secret stored, unconfirmed) -> ENABLED -> DISABLED.
Every transition attempt appends a security event, successful or not.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from datetime import datetime

from app.application.dtos.auth import SessionResult, TwoFactorSetupResult
from app.application.dtos.identity import RequestMetadata
from app.application.interfaces.repositories import (
    IIdentityRepository,
    IRecoveryCodeRepository,
)
from app.application.interfaces.services import ITotpService
from app.application.services.hash_service import HashService
from app.application.services.notification_service import NotificationService
from app.application.services.security_event_log import SecurityEventLog
from app.application.services.token_issuer import TokenIssuer
from app.domain.entities.identity import IdentityEntity
from app.domain.enums import TwoFactorState
from app.domain.exceptions import (
    AccountLockedException,
    ForbiddenException,
    InvalidCodeException,
    TwoFactorStateException,
)
from app.shared.enums import SecurityEventType
from app.shared.telemetry.tracing import traced
from app.shared.utils.datetime import utc_now

logger = logging.getLogger(__name__)

_TOTP_CODE_RE = re.compile(r"^\d{6}$")

METHOD_TOTP = "totp"
METHOD_RECOVERY_CODE = "recovery_code"


class TwoFactorService:
    """TOTP enrollment and verification with single-use recovery codes."""

    def __init__(
        self,
        identities: IIdentityRepository,
        recovery_codes: IRecoveryCodeRepository,
        totp: ITotpService,
        hasher: HashService,
        issuer: TokenIssuer,
        events: SecurityEventLog,
        notifier: NotificationService,
        *,
        recovery_code_count: int = 10,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.identities = identities
        self.recovery_codes = recovery_codes
        self.totp = totp
        self.hasher = hasher
        self.issuer = issuer
        self.events = events
        self.notifier = notifier
        self.recovery_code_count = recovery_code_count
        self.clock = clock

    @traced("auth.2fa.setup")
    async def setup(
        self, identity: IdentityEntity, metadata: RequestMetadata | None = None
    ) -> TwoFactorSetupResult:
        """Provision a new secret (replacing any unconfirmed one). 2FA stays disabled."""
        if identity.two_factor_state == TwoFactorState.ENABLED:
            raise TwoFactorStateException("Two-factor authentication is already enabled")
        secret = self.totp.generate_secret()
        await self.identities.set_two_factor_secret(identity.id, secret, self.clock())
        await self.events.record(
            SecurityEventType.TWO_FACTOR_SETUP,
            success=True,
            identity_id=identity.id,
            metadata=metadata,
        )
        return TwoFactorSetupResult(
            secret=secret,
            otpauth_url=self.totp.provisioning_uri(secret, identity.email),
        )

    @traced("auth.2fa.enable")
    async def enable(
        self,
        identity: IdentityEntity,
        code: str,
        metadata: RequestMetadata | None = None,
    ) -> list[str]:
        """Confirm the provisioned secret with a TOTP code and return fresh recovery codes.

        The plaintext codes are returned exactly once; only salted hashes are stored.
        """
        state = identity.two_factor_state
        if state == TwoFactorState.ENABLED:
            raise TwoFactorStateException("Two-factor authentication is already enabled")
        if state == TwoFactorState.DISABLED or identity.two_factor_secret is None:
            raise TwoFactorStateException("Two-factor setup has not been started")
        now = self.clock()
        if not self._verify_totp(identity.two_factor_secret, code, now):
            await self.events.record(
                SecurityEventType.TWO_FACTOR_ENABLE_FAILED,
                success=False,
                identity_id=identity.id,
                metadata=metadata,
            )
            raise InvalidCodeException()
        await self.identities.enable_two_factor(identity.id, now)
        codes = await self._issue_recovery_codes(identity.id)
        await self.events.record(
            SecurityEventType.TWO_FACTOR_ENABLED,
            success=True,
            identity_id=identity.id,
            metadata=metadata,
        )
        await self.notifier.two_factor_enabled(identity)
        return codes

    @traced("auth.2fa.verify")
    async def verify_login(
        self,
        email: str,
        code: str,
        metadata: RequestMetadata | None = None,
    ) -> SessionResult:
        """Second login step: accept a TOTP code or an unused recovery code and mint a session."""
        email = email.strip().lower()
        now = self.clock()
        identity = await self.identities.get_by_email(email)
        if (
            identity is None
            or identity.two_factor_state != TwoFactorState.ENABLED
            or identity.two_factor_secret is None
        ):
            await self.events.record(
                SecurityEventType.TWO_FACTOR_VERIFY_FAILED,
                success=False,
                identity_id=identity.id if identity else None,
                metadata=metadata,
                email=email,
                reason="not_enrolled",
            )
            raise InvalidCodeException()
        if identity.is_locked(now):
            remaining = identity.remaining_lock_minutes(now)
            await self.events.record(
                SecurityEventType.TWO_FACTOR_VERIFY_FAILED,
                success=False,
                identity_id=identity.id,
                metadata=metadata,
                reason="locked",
                remaining_minutes=remaining,
            )
            raise AccountLockedException(remaining)
        if not identity.is_active:
            await self.events.record(
                SecurityEventType.TWO_FACTOR_VERIFY_FAILED,
                success=False,
                identity_id=identity.id,
                metadata=metadata,
                reason="inactive",
            )
            raise ForbiddenException("Account is deactivated")

        method = await self._verify_second_factor(identity, code, now)
        if method is None:
            await self.events.record(
                SecurityEventType.TWO_FACTOR_VERIFY_FAILED,
                success=False,
                identity_id=identity.id,
                metadata=metadata,
            )
            raise InvalidCodeException()
        if method == METHOD_RECOVERY_CODE:
            await self._record_recovery_code_use(identity.id, "login", metadata)
        await self.events.record(
            SecurityEventType.TWO_FACTOR_VERIFIED,
            success=True,
            identity_id=identity.id,
            metadata=metadata,
            method=method,
        )
        return await self.issuer.issue(identity)

    @traced("auth.2fa.disable")
    async def disable(
        self,
        identity: IdentityEntity,
        code: str,
        metadata: RequestMetadata | None = None,
    ) -> None:
        """Disable 2FA after a valid TOTP or recovery code; deletes the secret and all codes."""
        if identity.two_factor_state != TwoFactorState.ENABLED:
            raise TwoFactorStateException("Two-factor authentication is not enabled")
        method = await self._verify_second_factor(identity, code, self.clock())
        if method is None:
            await self.events.record(
                SecurityEventType.TWO_FACTOR_DISABLE_FAILED,
                success=False,
                identity_id=identity.id,
                metadata=metadata,
            )
            raise InvalidCodeException()
        if method == METHOD_RECOVERY_CODE:
            await self._record_recovery_code_use(identity.id, "disable", metadata)
        await self.identities.disable_two_factor(identity.id)
        await self.recovery_codes.delete_all(identity.id)
        await self.events.record(
            SecurityEventType.TWO_FACTOR_DISABLED,
            success=True,
            identity_id=identity.id,
            metadata=metadata,
            method=method,
        )
        await self.notifier.two_factor_disabled(identity)

    @traced("auth.2fa.regenerate_recovery_codes")
    async def regenerate_recovery_codes(
        self,
        identity: IdentityEntity,
        code: str,
        metadata: RequestMetadata | None = None,
    ) -> list[str]:
        """Replace the whole recovery code batch. Only a TOTP code is accepted here."""
        if identity.two_factor_state != TwoFactorState.ENABLED or not identity.two_factor_secret:
            raise TwoFactorStateException("Two-factor authentication is not enabled")
        if not self._verify_totp(identity.two_factor_secret, code, self.clock()):
            await self.events.record(
                SecurityEventType.RECOVERY_CODES_REGENERATE_FAILED,
                success=False,
                identity_id=identity.id,
                metadata=metadata,
            )
            raise InvalidCodeException()
        codes = await self._issue_recovery_codes(identity.id)
        await self.events.record(
            SecurityEventType.RECOVERY_CODES_REGENERATED,
            success=True,
            identity_id=identity.id,
            metadata=metadata,
            count=len(codes),
        )
        return codes

    def _verify_totp(self, secret: str, code: str, at: datetime) -> bool:
        candidate = code.strip()
        if not _TOTP_CODE_RE.fullmatch(candidate):
            return False
        return self.totp.verify(secret, candidate, at)

    async def _verify_second_factor(
        self, identity: IdentityEntity, code: str, at: datetime
    ) -> str | None:
        """Return the method that verified code, or None.

        Six digits are checked as TOTP only; anything else is treated as a
        recovery code and consumed on match.
        """
        candidate = code.strip()
        if _TOTP_CODE_RE.fullmatch(candidate):
            assert identity.two_factor_secret is not None
            if self.totp.verify(identity.two_factor_secret, candidate, at):
                return METHOD_TOTP
            return None
        if await self._consume_recovery_code(identity.id, candidate, at):
            return METHOD_RECOVERY_CODE
        return None

    async def _consume_recovery_code(
        self, identity_id: str, candidate: str, at: datetime
    ) -> bool:
        unused = await self.recovery_codes.list_unused(identity_id)
        match = None
        # compare against every stored hash so timing does not reveal the position
        for record in unused:
            if self.hasher.verify_recovery_code(candidate, record.code_hash) and match is None:
                match = record
        if match is None:
            return False
        return await self.recovery_codes.mark_used(match.id, at)

    async def _issue_recovery_codes(self, identity_id: str) -> list[str]:
        codes = self.hasher.generate_recovery_codes(self.recovery_code_count)
        await self.recovery_codes.replace_all(
            identity_id, [self.hasher.hash_recovery_code(c) for c in codes]
        )
        return codes

    async def _record_recovery_code_use(
        self, identity_id: str, purpose: str, metadata: RequestMetadata | None
    ) -> None:
        remaining = len(await self.recovery_codes.list_unused(identity_id))
        await self.events.record(
            SecurityEventType.TWO_FACTOR_RECOVERY_CODE_USED,
            success=True,
            identity_id=identity_id,
            metadata=metadata,
            purpose=purpose,
            remaining=remaining,
        )
        if remaining <= 2:
            logger.info("Identity %s has %d recovery code(s) left", identity_id, remaining)
