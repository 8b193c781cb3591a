"""Recovery codes, password reset tokens and the security event log."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from app.infrastructure.persistence.database import Base
from app.infrastructure.persistence.models.mixins import CreatedAtMixin, CuidMixin


class RecoveryCode(CuidMixin, CreatedAtMixin, Base):
    """Single-use 2FA recovery code, stored as 'salt$sha256'. used_at marks redemption."""

    __tablename__ = "recovery_code"

    identity_id: Mapped[str] = mapped_column(
        String, ForeignKey("identity.id", ondelete="CASCADE"), nullable=False, index=True
    )
    code_hash: Mapped[str] = mapped_column(String(128), nullable=False)
    used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class PasswordResetToken(CuidMixin, CreatedAtMixin, Base):
    """One-time password reset token. Stored by token_hash; used_at marks redemption."""

    __tablename__ = "password_reset_token"

    identity_id: Mapped[str] = mapped_column(
        String, ForeignKey("identity.id", ondelete="CASCADE"), nullable=False, index=True
    )
    token_hash: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class SecurityEvent(CuidMixin, CreatedAtMixin, Base):
    """Append-only security event. identity_id is null for unknown-email events."""

    __tablename__ = "security_event"

    identity_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("identity.id", ondelete="SET NULL"), nullable=True
    )
    event_type: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    success: Mapped[bool] = mapped_column(Boolean, nullable=False)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(512), nullable=True)
    details: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    __table_args__ = (
        Index("ix_security_event_identity_created", "identity_id", "created_at"),
    )
