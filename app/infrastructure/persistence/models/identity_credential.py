"""Credential store used by the local identity provider."""

from typing import Any

from sqlalchemy import JSON, Boolean, String, text
from sqlalchemy.orm import Mapped, mapped_column

from app.infrastructure.persistence.database import Base
from app.infrastructure.persistence.models.mixins import CuidMixin, TimestampMixin


class IdentityCredential(CuidMixin, TimestampMixin, Base):
    """Email + bcrypt hash. Its id is the identity id handed to the profile table."""

    __tablename__ = "identity_credential"

    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    email_confirmed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    user_metadata: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
