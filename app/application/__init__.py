"""Application layer: interfaces, DTOs, services.

Depends only on domain and protocol definitions (DIP).
Infrastructure implements the interfaces (repositories, provider, email, signer).
"""

from app.application.interfaces import (
    ICompanyRepository,
    IEmailDispatcher,
    IHashService,
    IIdentityProvider,
    IIdentityRepository,
    IMembershipRepository,
    ISecurityEventRepository,
    ITokenSigner,
)
from app.application.services import (
    CredentialGuard,
    HashService,
    IdentityService,
    PasswordService,
    RegistrationService,
    TokenIssuer,
    TwoFactorService,
)

__all__ = [
    "CredentialGuard",
    "HashService",
    "ICompanyRepository",
    "IEmailDispatcher",
    "IHashService",
    "IIdentityProvider",
    "IIdentityRepository",
    "IMembershipRepository",
    "ISecurityEventRepository",
    "ITokenSigner",
    "IdentityService",
    "PasswordService",
    "RegistrationService",
    "TokenIssuer",
    "TwoFactorService",
]
