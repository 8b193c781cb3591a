"""DTOs for security events and single-use secrets (recovery codes, reset tokens)."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from app.shared.enums import SecurityEventType


@dataclass(frozen=True)
class SecurityEventCreate:
    """Append-only security event to persist."""

    event_type: SecurityEventType
    success: bool
    identity_id: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    details: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SecurityEventResult:
    """Persisted security event."""

    id: str
    event_type: str
    success: bool
    identity_id: str | None
    ip_address: str | None
    user_agent: str | None
    details: dict[str, Any]
    created_at: datetime


@dataclass(frozen=True)
class RecoveryCodeRecord:
    """Stored recovery code (salted hash only)."""

    id: str
    identity_id: str
    code_hash: str
    used_at: datetime | None = None


@dataclass(frozen=True)
class PasswordResetTokenRecord:
    """Stored password reset token (hash only)."""

    id: str
    identity_id: str
    expires_at: datetime
    used_at: datetime | None = None
