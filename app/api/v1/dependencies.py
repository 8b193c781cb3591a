"""Presentation-layer dependency injection (composition root).

Provides FastAPI Depends() for DB sessions, adapters and application
services. Every service is built here from infrastructure implementations;
routes depend only on these dependencies, not on infra directly.

The identity provider is chosen by IDENTITY_PROVIDER ('local' keeps
credentials in the same database; 'gotrue' calls the GoTrue admin API).
Email is sent through Resend when EMAIL_PROVIDER_API_KEY is set and only
logged otherwise.
"""

from __future__ import annotations

from typing import Annotated

import httpx
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.dtos.auth import CurrentIdentity
from app.application.dtos.identity import RequestMetadata
from app.application.interfaces.services import (
    IEmailDispatcher,
    IIdentityProvider,
    IPasswordHasher,
)
from app.application.services import (
    CompanyRegistry,
    CredentialGuard,
    HashService,
    IdentityService,
    LockoutPolicy,
    NotificationService,
    PasswordService,
    RegistrationService,
    RetryPolicy,
    SecurityEventLog,
    TokenIssuer,
    TwoFactorService,
)
from app.core.config import Settings, get_settings
from app.domain.exceptions import (
    ForbiddenException,
    InternalException,
    InvalidTokenException,
)
from app.domain.value_objects.core import PasswordPolicy
from app.infrastructure.external.email import (
    LogOnlyEmailDispatcher,
    ResendEmailDispatcher,
)
from app.infrastructure.external.identity import (
    GoTrueIdentityProvider,
    LocalIdentityProvider,
)
from app.infrastructure.persistence.database import get_db
from app.infrastructure.persistence.repositories import (
    CompanyRepository,
    IdentityRepository,
    InvitationRepository,
    MembershipRepository,
    PasswordResetTokenRepository,
    RecoveryCodeRepository,
    SecurityEventRepository,
)
from app.infrastructure.security import (
    BcryptPasswordHasher,
    JwtTokenSigner,
    PyOtpTotpService,
)
from app.infrastructure.services import SqlSubscriptionProvisioner
from app.shared.request_metadata import get_request_metadata

DbSession = Annotated[AsyncSession, Depends(get_db)]
AppSettings = Annotated[Settings, Depends(get_settings)]

_http_bearer = HTTPBearer(auto_error=False)


def _http_client(request: Request) -> httpx.AsyncClient | None:
    """Shared client created in lifespan; adapters fall back to their own when absent."""
    return getattr(request.app.state, "http_client", None)


def get_metadata(request: Request) -> RequestMetadata:
    """Client IP and user agent for security events."""
    return get_request_metadata(request)


def get_hash_service() -> HashService:
    return HashService()


def get_password_hasher(settings: AppSettings) -> IPasswordHasher:
    return BcryptPasswordHasher(rounds=settings.bcrypt_rounds)


def get_token_signer(settings: AppSettings) -> JwtTokenSigner:
    return JwtTokenSigner(
        settings.secret_key.get_secret_value(),
        algorithm=settings.algorithm,
        expire_minutes=settings.access_token_expire_minutes,
    )


def get_password_policy(settings: AppSettings) -> PasswordPolicy:
    return PasswordPolicy(min_length=settings.password_min_length)


def get_identity_provider(
    request: Request,
    db: DbSession,
    settings: AppSettings,
    password_hasher: Annotated[IPasswordHasher, Depends(get_password_hasher)],
) -> IIdentityProvider:
    """Identity provider adapter selected by settings (composition root)."""
    if settings.identity_provider == "gotrue":
        if not settings.gotrue_url or settings.gotrue_service_role_key is None:
            raise InternalException("GoTrue identity provider is not configured")
        return GoTrueIdentityProvider(
            settings.gotrue_url,
            settings.gotrue_service_role_key.get_secret_value(),
            http_client=_http_client(request),
            timeout=settings.identity_provider_timeout_seconds,
        )
    return LocalIdentityProvider(db, password_hasher)


def get_email_dispatcher(request: Request, settings: AppSettings) -> IEmailDispatcher:
    """Resend dispatcher when an API key is configured; log-only otherwise."""
    if settings.email_provider_api_key and settings.email_provider_api_key.get_secret_value():
        return ResendEmailDispatcher(
            settings.email_provider_api_key.get_secret_value(),
            settings.email_from,
            api_url=settings.email_api_url,
            http_client=_http_client(request),
        )
    return LogOnlyEmailDispatcher()


def get_notification_service(
    settings: AppSettings,
    dispatcher: Annotated[IEmailDispatcher, Depends(get_email_dispatcher)],
) -> NotificationService:
    return NotificationService(
        dispatcher,
        app_name=settings.app_name.title(),
        frontend_url=settings.frontend_url,
    )


def get_identity_repo(db: DbSession) -> IdentityRepository:
    return IdentityRepository(db)


def get_security_event_log(db: DbSession) -> SecurityEventLog:
    return SecurityEventLog(SecurityEventRepository(db))


def get_company_registry(db: DbSession, settings: AppSettings) -> CompanyRegistry:
    """Company registry with SQL repositories and default-subscription provisioning."""
    return CompanyRegistry(
        CompanyRepository(db),
        MembershipRepository(db),
        SqlSubscriptionProvisioner(
            db, plan=settings.default_plan, trial_days=settings.default_trial_days
        ),
        slug_max_random_attempts=settings.slug_max_random_attempts,
        create_max_attempts=settings.company_create_max_attempts,
    )


def get_token_issuer(
    signer: Annotated[JwtTokenSigner, Depends(get_token_signer)],
    registry: Annotated[CompanyRegistry, Depends(get_company_registry)],
    events: Annotated[SecurityEventLog, Depends(get_security_event_log)],
) -> TokenIssuer:
    return TokenIssuer(signer, registry, events)


def get_credential_guard(
    settings: AppSettings,
    identities: Annotated[IdentityRepository, Depends(get_identity_repo)],
    provider: Annotated[IIdentityProvider, Depends(get_identity_provider)],
    issuer: Annotated[TokenIssuer, Depends(get_token_issuer)],
    events: Annotated[SecurityEventLog, Depends(get_security_event_log)],
) -> CredentialGuard:
    """Login guard with lockout thresholds from settings."""
    policy = LockoutPolicy(
        max_failed_attempts=settings.lockout_max_failed_attempts,
        window_minutes=settings.lockout_window_minutes,
    )
    return CredentialGuard(identities, provider, issuer, events, policy)


def get_registration_service(
    db: DbSession,
    settings: AppSettings,
    identities: Annotated[IdentityRepository, Depends(get_identity_repo)],
    provider: Annotated[IIdentityProvider, Depends(get_identity_provider)],
    registry: Annotated[CompanyRegistry, Depends(get_company_registry)],
    issuer: Annotated[TokenIssuer, Depends(get_token_issuer)],
    events: Annotated[SecurityEventLog, Depends(get_security_event_log)],
    notifier: Annotated[NotificationService, Depends(get_notification_service)],
    hasher: Annotated[HashService, Depends(get_hash_service)],
    password_policy: Annotated[PasswordPolicy, Depends(get_password_policy)],
) -> RegistrationService:
    """Registration saga (composition root)."""
    return RegistrationService(
        identities,
        MembershipRepository(db),
        InvitationRepository(db),
        provider,
        registry,
        issuer,
        events,
        notifier,
        hasher,
        password_policy=password_policy,
        profile_retry=RetryPolicy(
            max_attempts=settings.profile_provisioning_max_attempts,
            backoff_seconds=settings.profile_provisioning_backoff_seconds,
        ),
    )


def get_two_factor_service(
    db: DbSession,
    settings: AppSettings,
    identities: Annotated[IdentityRepository, Depends(get_identity_repo)],
    hasher: Annotated[HashService, Depends(get_hash_service)],
    issuer: Annotated[TokenIssuer, Depends(get_token_issuer)],
    events: Annotated[SecurityEventLog, Depends(get_security_event_log)],
    notifier: Annotated[NotificationService, Depends(get_notification_service)],
) -> TwoFactorService:
    return TwoFactorService(
        identities,
        RecoveryCodeRepository(db),
        PyOtpTotpService(issuer=settings.totp_issuer, valid_window=settings.totp_valid_window),
        hasher,
        issuer,
        events,
        notifier,
        recovery_code_count=settings.recovery_code_count,
    )


def get_password_service(
    db: DbSession,
    settings: AppSettings,
    identities: Annotated[IdentityRepository, Depends(get_identity_repo)],
    provider: Annotated[IIdentityProvider, Depends(get_identity_provider)],
    password_hasher: Annotated[IPasswordHasher, Depends(get_password_hasher)],
    hasher: Annotated[HashService, Depends(get_hash_service)],
    events: Annotated[SecurityEventLog, Depends(get_security_event_log)],
    notifier: Annotated[NotificationService, Depends(get_notification_service)],
    password_policy: Annotated[PasswordPolicy, Depends(get_password_policy)],
) -> PasswordService:
    return PasswordService(
        identities,
        PasswordResetTokenRepository(db),
        provider,
        password_hasher,
        hasher,
        events,
        notifier,
        password_policy=password_policy,
        reset_token_ttl_minutes=settings.password_reset_token_ttl_minutes,
    )


def get_identity_service(
    identities: Annotated[IdentityRepository, Depends(get_identity_repo)],
    provider: Annotated[IIdentityProvider, Depends(get_identity_provider)],
    registry: Annotated[CompanyRegistry, Depends(get_company_registry)],
    events: Annotated[SecurityEventLog, Depends(get_security_event_log)],
) -> IdentityService:
    return IdentityService(identities, provider, registry, events)


async def get_current_identity(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_http_bearer)],
    signer: Annotated[JwtTokenSigner, Depends(get_token_signer)],
    identities: Annotated[IdentityRepository, Depends(get_identity_repo)],
) -> CurrentIdentity:
    """Resolve the caller from the bearer token.

    Signature and expiry are checked by the signer; the identity must still
    exist and be active.

    Raises:
        InvalidTokenException: Missing, malformed, expired token or unknown subject.
        ForbiddenException: The identity has been deactivated.
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise InvalidTokenException()
    claims = signer.decode(credentials.credentials)
    identity = await identities.get_by_id(claims.sub)
    if identity is None:
        raise InvalidTokenException()
    if not identity.is_active:
        raise ForbiddenException("Account is deactivated")
    return CurrentIdentity(identity=identity, claims=claims)


CurrentCaller = Annotated[CurrentIdentity, Depends(get_current_identity)]
Metadata = Annotated[RequestMetadata, Depends(get_metadata)]
