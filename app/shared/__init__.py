"""Cross-layer building blocks with no identity business rules."""

from app.shared.enums import ProviderErrorKind, SecurityEventType, SubscriptionStatus
from app.shared.utils import ensure_utc, generate_cuid, utc_now

__all__ = [
    "ProviderErrorKind",
    "SecurityEventType",
    "SubscriptionStatus",
    "ensure_utc",
    "generate_cuid",
    "utc_now",
]
