"""Initial identity schema: profiles, credentials, companies, 2FA, reset tokens, events.

Revision ID: a1c0e5d2b7f4
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence
from typing import Union

import sqlalchemy as sa
from alembic import op

revision: str = "a1c0e5d2b7f4"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps(*, updated: bool = True) -> list[sa.Column]:
    cols = [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        )
    ]
    if updated:
        cols.append(
            sa.Column(
                "updated_at",
                sa.DateTime(timezone=True),
                server_default=sa.text("now()"),
                nullable=False,
            )
        )
    return cols


def upgrade() -> None:
    op.create_table(
        "identity",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("full_name", sa.String(200), nullable=False),
        sa.Column("avatar_url", sa.String(2048), nullable=True),
        sa.Column("role", sa.String(32), server_default=sa.text("'member'"), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column(
            "is_two_factor_enabled",
            sa.Boolean(),
            server_default=sa.text("false"),
            nullable=False,
        ),
        sa.Column("two_factor_secret", sa.String(64), nullable=True),
        sa.Column("two_factor_secret_created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("two_factor_confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "failed_login_attempts", sa.Integer(), server_default=sa.text("0"), nullable=False
        ),
        sa.Column("locked_until", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_failed_login", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
        sa.Column("password_hash", sa.String(255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_identity_email"), "identity", ["email"], unique=True)

    op.create_table(
        "identity_credential",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column(
            "email_confirmed", sa.Boolean(), server_default=sa.text("false"), nullable=False
        ),
        sa.Column("user_metadata", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_identity_credential_email"), "identity_credential", ["email"], unique=True
    )

    op.create_table(
        "company",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("slug", sa.String(63), nullable=False),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_company_slug"), "company", ["slug"], unique=True)

    op.create_table(
        "company_membership",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("identity_id", sa.String(), nullable=False),
        sa.Column("company_id", sa.String(), nullable=False),
        sa.Column("role", sa.String(16), nullable=False),
        sa.Column("status", sa.String(16), server_default=sa.text("'active'"), nullable=False),
        sa.Column(
            "joined_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["identity_id"], ["identity.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["company_id"], ["company.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "identity_id", "company_id", name="uq_membership_identity_company"
        ),
        sa.CheckConstraint(
            "role IN ('admin', 'member', 'viewer')", name="ck_membership_role"
        ),
        sa.CheckConstraint(
            "status IN ('active', 'pending', 'inactive')", name="ck_membership_status"
        ),
    )
    op.create_index(
        op.f("ix_company_membership_identity_id"), "company_membership", ["identity_id"]
    )
    op.create_index(
        op.f("ix_company_membership_company_id"), "company_membership", ["company_id"]
    )

    op.create_table(
        "company_invitation",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("company_id", sa.String(), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("token_hash", sa.String(64), nullable=False),
        sa.Column("role", sa.String(16), nullable=False),
        sa.Column("invited_by", sa.String(), nullable=True),
        sa.Column("status", sa.String(16), server_default=sa.text("'pending'"), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(["company_id"], ["company.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["invited_by"], ["identity.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "status IN ('pending', 'accepted', 'expired')", name="ck_invitation_status"
        ),
    )
    op.create_index(
        op.f("ix_company_invitation_token_hash"),
        "company_invitation",
        ["token_hash"],
        unique=True,
    )
    op.create_index(
        op.f("ix_company_invitation_company_id"), "company_invitation", ["company_id"]
    )
    op.create_index(op.f("ix_company_invitation_email"), "company_invitation", ["email"])

    op.create_table(
        "recovery_code",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("identity_id", sa.String(), nullable=False),
        sa.Column("code_hash", sa.String(128), nullable=False),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(["identity_id"], ["identity.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_recovery_code_identity_id"), "recovery_code", ["identity_id"])

    op.create_table(
        "password_reset_token",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("identity_id", sa.String(), nullable=False),
        sa.Column("token_hash", sa.String(64), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(["identity_id"], ["identity.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_password_reset_token_token_hash"),
        "password_reset_token",
        ["token_hash"],
        unique=True,
    )
    op.create_index(
        op.f("ix_password_reset_token_identity_id"), "password_reset_token", ["identity_id"]
    )

    op.create_table(
        "security_event",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("identity_id", sa.String(), nullable=True),
        sa.Column("event_type", sa.String(64), nullable=False),
        sa.Column("success", sa.Boolean(), nullable=False),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.String(512), nullable=True),
        sa.Column("details", sa.JSON(), nullable=True),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(["identity_id"], ["identity.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_security_event_event_type"), "security_event", ["event_type"])
    op.create_index(
        "ix_security_event_identity_created", "security_event", ["identity_id", "created_at"]
    )

    op.create_table(
        "subscription",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("company_id", sa.String(), nullable=False),
        sa.Column("plan", sa.String(32), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("trial_ends_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["company_id"], ["company.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("company_id", name="uq_subscription_company"),
    )


def downgrade() -> None:
    op.drop_table("subscription")
    op.drop_index("ix_security_event_identity_created", table_name="security_event")
    op.drop_index(op.f("ix_security_event_event_type"), table_name="security_event")
    op.drop_table("security_event")
    op.drop_index(
        op.f("ix_password_reset_token_identity_id"), table_name="password_reset_token"
    )
    op.drop_index(
        op.f("ix_password_reset_token_token_hash"), table_name="password_reset_token"
    )
    op.drop_table("password_reset_token")
    op.drop_index(op.f("ix_recovery_code_identity_id"), table_name="recovery_code")
    op.drop_table("recovery_code")
    op.drop_index(op.f("ix_company_invitation_email"), table_name="company_invitation")
    op.drop_index(op.f("ix_company_invitation_company_id"), table_name="company_invitation")
    op.drop_index(op.f("ix_company_invitation_token_hash"), table_name="company_invitation")
    op.drop_table("company_invitation")
    op.drop_index(op.f("ix_company_membership_company_id"), table_name="company_membership")
    op.drop_index(op.f("ix_company_membership_identity_id"), table_name="company_membership")
    op.drop_table("company_membership")
    op.drop_index(op.f("ix_company_slug"), table_name="company")
    op.drop_table("company")
    op.drop_index(op.f("ix_identity_credential_email"), table_name="identity_credential")
    op.drop_table("identity_credential")
    op.drop_index(op.f("ix_identity_email"), table_name="identity")
    op.drop_table("identity")
