"""Service interfaces (ports) for the application layer.

Protocols define contracts for external collaborators (identity provider,
email, billing) and security primitives (DIP).
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from app.application.dtos.auth import TokenClaims
    from app.application.dtos.identity import ProviderResult
    from app.application.dtos.notification import EmailMessage


# Hash service interface
class IHashService(Protocol):
    """Protocol for hashing stored single-use secrets."""

    def hash_token(self, raw_token: str) -> str:
        """Lookup digest for an opaque token."""

    def hash_recovery_code(self, code: str, salt: str | None = None) -> str:
        """Salted digest for a recovery code."""

    def verify_recovery_code(self, code: str, stored_hash: str) -> bool:
        """Constant-time check of a code against a stored salted digest."""


# Identity provider interface
class IIdentityProvider(Protocol):
    """Protocol for the external identity provider that owns credentials.

    Every method returns a ProviderResult; adapters never raise for expected
    failures (duplicate, bad password, unreachable).
    """

    async def create_identity(
        self, email: str, password: str, metadata: dict[str, Any]
    ) -> ProviderResult[str]:
        """Create an unconfirmed identity; value is the new identity id."""

    async def verify_password(self, email: str, password: str) -> ProviderResult[str]:
        """Check credentials; value is the identity id on success."""

    async def update_password(
        self, identity_id: str, new_password: str
    ) -> ProviderResult[None]:
        """Replace the identity's password."""

    async def delete_identity(self, identity_id: str) -> ProviderResult[None]:
        """Delete the identity (registration compensation)."""

    async def send_verification_email(self, email: str) -> ProviderResult[None]:
        """Ask the provider to (re)send its email confirmation message."""


# Email dispatcher interface
class IEmailDispatcher(Protocol):
    """Protocol for outbound email delivery. Raises on delivery failure."""

    async def send(self, message: EmailMessage) -> None:
        """Deliver one message."""


# Subscription provisioner interface
class ISubscriptionProvisioner(Protocol):
    """Protocol for creating a company's default subscription (billing collaborator)."""

    async def provision_default(self, company_id: str) -> None:
        """Create the default plan/trial for a new company."""


# Token signer interface
class ITokenSigner(Protocol):
    """Protocol for signing and verifying session tokens."""

    def encode(self, claims: TokenClaims) -> str:
        """Return a signed token carrying claims and an expiry."""

    def decode(self, token: str) -> TokenClaims:
        """Verify signature and expiry. Raises InvalidTokenException."""


# TOTP interface
class ITotpService(Protocol):
    """Protocol for time-based one-time passwords."""

    def generate_secret(self) -> str:
        """Return a new random base32 shared secret."""

    def provisioning_uri(self, secret: str, email: str) -> str:
        """Return the otpauth:// enrollment URI for authenticator apps."""

    def verify(self, secret: str, code: str, at: datetime) -> bool:
        """Verify code for the step containing at, tolerating the configured window."""


# Password hasher interface
class IPasswordHasher(Protocol):
    """Protocol for one-way password hashing."""

    async def hash(self, password: str) -> str:
        """Return a password hash."""

    async def verify(self, password: str, password_hash: str) -> bool:
        """Return True if password matches password_hash."""
