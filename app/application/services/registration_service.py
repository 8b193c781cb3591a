"""Registration: identity + profile + company (or invitation) as a saga.

Steps: duplicate check -> provider identity -> local profile -> either
accept an invitation and join its company, or create a company with an
admin membership -> mint a session. Any failure after the provider
identity exists compensates every completed step in reverse order, so no
orphaned provider identity survives a failed registration.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from app.application.dtos.auth import RegisterCommand, SessionResult
from app.application.dtos.company import CompanyResult, InvitationResult
from app.application.dtos.identity import NewProfile, RequestMetadata
from app.application.interfaces.repositories import (
    IIdentityRepository,
    IInvitationRepository,
    IMembershipRepository,
)
from app.application.interfaces.services import IHashService, IIdentityProvider
from app.application.services.company_registry import CompanyRegistry
from app.application.services.notification_service import (
    NotificationService,
    redact_email,
)
from app.application.services.retry import RetryPolicy
from app.application.services.saga import SagaCoordinator
from app.application.services.security_event_log import SecurityEventLog
from app.application.services.token_issuer import TokenIssuer
from app.domain.entities.company import MembershipEntity
from app.domain.entities.identity import IdentityEntity
from app.domain.enums import InvitationStatus
from app.domain.exceptions import (
    ConflictException,
    InternalException,
    InvalidTokenException,
    ProvisioningTimeoutException,
    StoreUnavailableException,
    ValidationException,
)
from app.domain.value_objects.core import MAX_NAME_LENGTH, EmailAddress, PasswordPolicy
from app.shared.enums import ProviderErrorKind, SecurityEventType
from app.shared.telemetry.tracing import traced
from app.shared.utils.datetime import utc_now

logger = logging.getLogger(__name__)

_DUPLICATE_EMAIL_MESSAGE = "An account with this email already exists"
_INVALID_INVITATION_MESSAGE = "Invalid or expired invitation"
_WORKSPACE_SUFFIX = "'s Workspace"


def default_company_name(full_name: str) -> str:
    """Fallback company name when none (or only whitespace) is supplied.

    Long names are cut so the result still fits MAX_NAME_LENGTH.
    """
    owner = full_name.strip()[: MAX_NAME_LENGTH - len(_WORKSPACE_SUFFIX)].rstrip()
    return f"{owner}{_WORKSPACE_SUFFIX}"


class RegistrationService:
    """Orchestrates account registration with compensating rollback."""

    def __init__(
        self,
        identities: IIdentityRepository,
        memberships: IMembershipRepository,
        invitations: IInvitationRepository,
        provider: IIdentityProvider,
        registry: CompanyRegistry,
        issuer: TokenIssuer,
        events: SecurityEventLog,
        notifier: NotificationService,
        hasher: IHashService,
        *,
        password_policy: PasswordPolicy | None = None,
        profile_retry: RetryPolicy | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.identities = identities
        self.memberships = memberships
        self.invitations = invitations
        self.provider = provider
        self.registry = registry
        self.issuer = issuer
        self.events = events
        self.notifier = notifier
        self.hasher = hasher
        self.password_policy = password_policy or PasswordPolicy()
        self.profile_retry = profile_retry or RetryPolicy()
        self.clock = clock

    @traced("auth.register")
    async def register(
        self,
        command: RegisterCommand,
        metadata: RequestMetadata | None = None,
    ) -> SessionResult:
        """Register an identity and return a session scoped to its new (or invited) company.

        Raises:
            ValidationException: Weak password, bad email or blank name.
            ConflictException: Email already registered, or no unique company slug.
            InvalidTokenException: Invitation missing, used, expired or for another email.
            ProvisioningTimeoutException: Local profile could not be written.
            InternalException: Identity provider failure.
        """
        try:
            email = EmailAddress.normalize(command.email).value
        except ValueError as e:
            raise ValidationException("Invalid email format", field="email") from e
        full_name = command.full_name.strip()
        if not full_name:
            raise ValidationException("Full name is required", field="fullName")
        if len(full_name) > MAX_NAME_LENGTH:
            raise ValidationException(
                f"Full name must be at most {MAX_NAME_LENGTH} characters", field="fullName"
            )
        if command.company_name and len(command.company_name.strip()) > MAX_NAME_LENGTH:
            raise ValidationException(
                f"Company name must be at most {MAX_NAME_LENGTH} characters",
                field="companyName",
            )
        self.password_policy.enforce(command.password)

        saga = SagaCoordinator("registration")
        try:
            session, company_name = await self._run(saga, command, email, full_name)
        except Exception as exc:
            await self.events.record(
                SecurityEventType.REGISTER_FAILED,
                success=False,
                metadata=metadata,
                email=email,
                reason=getattr(exc, "error_code", type(exc).__name__),
                completed_steps=list(saga.completed_steps),
            )
            raise

        await self.events.record(
            SecurityEventType.REGISTER,
            success=True,
            identity_id=session.identity.id,
            metadata=metadata,
            company_id=session.current_company.company_id if session.current_company else None,
            via_invitation=bool(command.invitation_token),
        )
        await self.notifier.welcome(session.identity, company_name)
        await self._send_verification(email)
        logger.info("Registered identity %s (%s)", session.identity.id, redact_email(email))
        return session

    async def _send_verification(self, email: str) -> None:
        """Ask the provider to mail the confirmation link; never fails the registration."""
        try:
            result = await self.provider.send_verification_email(email)
        except Exception:
            logger.exception("Verification email for %s raised", redact_email(email))
            return
        if not result.ok:
            logger.warning(
                "Verification email for %s not sent: %s (%s)",
                redact_email(email),
                result.error,
                result.message,
            )

    async def _run(
        self,
        saga: SagaCoordinator,
        command: RegisterCommand,
        email: str,
        full_name: str,
    ) -> tuple[SessionResult, str | None]:
        if await self.identities.get_by_email(email) is not None:
            raise ConflictException(_DUPLICATE_EMAIL_MESSAGE)

        invitation: InvitationResult | None = None
        if command.invitation_token:
            invitation = await self._load_invitation(command.invitation_token, email)

        identity_id = await saga.execute(
            "create_identity",
            lambda: self._create_provider_identity(email, command.password, full_name),
            compensate=self._delete_provider_identity,
        )
        identity = await saga.execute(
            "provision_profile",
            lambda: self._provision_profile(
                NewProfile(id=identity_id, email=email, full_name=full_name)
            ),
            compensate=self._delete_profile,
        )

        company_name: str | None
        if invitation is not None:
            await saga.execute(
                "accept_invitation",
                lambda: self._accept_invitation(invitation),
                compensate=self._reopen_invitation,
            )
            membership = await saga.execute(
                "join_company",
                lambda: self.memberships.create(
                    identity_id=identity.id,
                    company_id=invitation.company_id,
                    role=invitation.role,
                ),
                compensate=self._delete_membership,
            )
            company_id = membership.company_id
            company_name = None
        else:
            name = (command.company_name or "").strip() or default_company_name(full_name)
            company, membership = await saga.execute(
                "create_company",
                lambda: self.registry.create_company(name, identity.id),
                compensate=self._remove_company,
            )
            company_id = company.id
            company_name = company.name
            await self.registry.provision_default_subscription(company.id)

        session = await saga.execute(
            "issue_session",
            lambda: self.issuer.issue(identity, company_id=company_id),
        )
        return session, company_name

    async def _load_invitation(self, token: str, email: str) -> InvitationResult:
        invitation = await self.invitations.get_by_token_hash(self.hasher.hash_token(token))
        if invitation is None or invitation.status != InvitationStatus.PENDING:
            raise InvalidTokenException(_INVALID_INVITATION_MESSAGE)
        if invitation.expires_at <= self.clock():
            await self.invitations.mark_expired(invitation.id)
            raise InvalidTokenException(_INVALID_INVITATION_MESSAGE)
        if invitation.email.strip().lower() != email:
            raise InvalidTokenException(_INVALID_INVITATION_MESSAGE)
        return invitation

    async def _create_provider_identity(
        self, email: str, password: str, full_name: str
    ) -> str:
        result = await self.provider.create_identity(
            email, password, {"full_name": full_name}
        )
        if result.ok and result.value:
            return result.value
        match result.error:
            case ProviderErrorKind.DUPLICATE:
                raise ConflictException(_DUPLICATE_EMAIL_MESSAGE)
            case _:
                logger.error(
                    "Identity provider create failed for %s: %s (%s)",
                    redact_email(email),
                    result.error,
                    result.message,
                )
                raise InternalException("identity provider create failed")

    async def _delete_provider_identity(self, identity_id: str) -> None:
        result = await self.provider.delete_identity(identity_id)
        if not result.ok and result.error != ProviderErrorKind.NOT_FOUND:
            raise InternalException(
                f"provider delete failed for {identity_id}: {result.error}"
            )

    async def _provision_profile(self, profile: NewProfile) -> IdentityEntity:
        """Return the profile row, creating it if the provider did not.

        Transient store failures are retried under profile_retry; when they
        persist, the privileged upsert path is used as the last resort.
        """
        existing = await self.identities.get_by_id(profile.id)
        if existing is not None:
            return existing
        try:
            return await self.profile_retry.run(
                lambda: self._create_or_fetch_profile(profile), name="profile_create"
            )
        except StoreUnavailableException:
            logger.warning("Profile create for %s exhausted retries; using direct write", profile.id)
        try:
            return await self.identities.upsert_profile(profile)
        except Exception as e:
            raise ProvisioningTimeoutException(
                profile.id, self.profile_retry.max_attempts
            ) from e

    async def _create_or_fetch_profile(self, profile: NewProfile) -> IdentityEntity:
        try:
            return await self.identities.create_profile(profile)
        except ConflictException:
            # provisioned concurrently by the provider
            existing = await self.identities.get_by_id(profile.id)
            if existing is None:
                raise
            return existing

    async def _delete_profile(self, identity: IdentityEntity) -> None:
        await self.identities.delete(identity.id)

    async def _accept_invitation(self, invitation: InvitationResult) -> InvitationResult:
        if not await self.invitations.mark_accepted(invitation.id, self.clock()):
            raise InvalidTokenException(_INVALID_INVITATION_MESSAGE)
        return invitation

    async def _reopen_invitation(self, invitation: InvitationResult) -> None:
        await self.invitations.reopen(invitation.id)

    async def _delete_membership(self, membership: MembershipEntity) -> None:
        await self.memberships.delete(membership.id)

    async def _remove_company(
        self, created: tuple[CompanyResult, MembershipEntity]
    ) -> None:
        company, membership = created
        await self.registry.remove_company(company.id, membership.id)
