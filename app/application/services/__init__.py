"""Application services: registration, login guard, 2FA, passwords, tokens, companies."""

from app.application.services.company_registry import CompanyRegistry
from app.application.services.credential_guard import CredentialGuard, LockoutPolicy
from app.application.services.email_templates import EmailTemplateRenderer
from app.application.services.hash_service import (
    HashAlgorithm,
    HashService,
    SHA256Algorithm,
)
from app.application.services.identity_service import IdentityService
from app.application.services.notification_service import NotificationService
from app.application.services.password_service import PasswordService
from app.application.services.registration_service import RegistrationService
from app.application.services.retry import RetryPolicy
from app.application.services.saga import SagaCoordinator, StepResult
from app.application.services.security_event_log import SecurityEventLog
from app.application.services.token_issuer import TokenIssuer
from app.application.services.two_factor_service import TwoFactorService

__all__ = [
    "CompanyRegistry",
    "CredentialGuard",
    "EmailTemplateRenderer",
    "HashAlgorithm",
    "HashService",
    "IdentityService",
    "LockoutPolicy",
    "NotificationService",
    "PasswordService",
    "RegistrationService",
    "RetryPolicy",
    "SHA256Algorithm",
    "SagaCoordinator",
    "SecurityEventLog",
    "StepResult",
    "TokenIssuer",
    "TwoFactorService",
]
