"""Company, membership and invitation ORM models."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.infrastructure.persistence.database import Base
from app.infrastructure.persistence.models.mixins import CreatedAtMixin, CuidMixin


class Company(CuidMixin, CreatedAtMixin, Base):
    """Tenant organization. Names may repeat; slug is globally unique."""

    __tablename__ = "company"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(63), unique=True, nullable=False, index=True)


class CompanyMembership(CuidMixin, Base):
    """Link between an identity and a company. At most one row per pair."""

    __tablename__ = "company_membership"

    identity_id: Mapped[str] = mapped_column(
        String, ForeignKey("identity.id", ondelete="CASCADE"), nullable=False, index=True
    )
    company_id: Mapped[str] = mapped_column(
        String, ForeignKey("company.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role: Mapped[str] = mapped_column(String(16), nullable=False)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default="active", server_default=text("'active'")
    )
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("identity_id", "company_id", name="uq_membership_identity_company"),
    )


class CompanyInvitation(CuidMixin, CreatedAtMixin, Base):
    """Pending invitation to join a company. Stored by token_hash only."""

    __tablename__ = "company_invitation"

    company_id: Mapped[str] = mapped_column(
        String, ForeignKey("company.id", ondelete="CASCADE"), nullable=False, index=True
    )
    email: Mapped[str] = mapped_column(String(320), nullable=False, index=True)
    token_hash: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    role: Mapped[str] = mapped_column(String(16), nullable=False)
    invited_by: Mapped[str | None] = mapped_column(
        String, ForeignKey("identity.id", ondelete="SET NULL"), nullable=True
    )
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default="pending", server_default=text("'pending'")
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    accepted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
