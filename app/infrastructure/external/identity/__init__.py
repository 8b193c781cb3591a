"""Identity provider adapters (IIdentityProvider)."""

from app.infrastructure.external.identity.gotrue import GoTrueIdentityProvider
from app.infrastructure.external.identity.local import LocalIdentityProvider

__all__ = ["GoTrueIdentityProvider", "LocalIdentityProvider"]
