"""Application interfaces (ports): repository and service protocols.

Define contracts for infrastructure implementations (DIP).
No runtime imports from app.infrastructure or app.api.
"""

from app.application.interfaces.repositories import (
    ICompanyRepository,
    IIdentityRepository,
    IInvitationRepository,
    IMembershipRepository,
    IPasswordResetTokenRepository,
    IRecoveryCodeRepository,
    ISecurityEventRepository,
)
from app.application.interfaces.services import (
    IEmailDispatcher,
    IHashService,
    IIdentityProvider,
    IPasswordHasher,
    ISubscriptionProvisioner,
    ITokenSigner,
    ITotpService,
)

__all__ = [
    "ICompanyRepository",
    "IEmailDispatcher",
    "IHashService",
    "IIdentityProvider",
    "IIdentityRepository",
    "IInvitationRepository",
    "IMembershipRepository",
    "IPasswordHasher",
    "IPasswordResetTokenRepository",
    "IRecoveryCodeRepository",
    "ISecurityEventRepository",
    "ISubscriptionProvisioner",
    "ITokenSigner",
    "ITotpService",
]
