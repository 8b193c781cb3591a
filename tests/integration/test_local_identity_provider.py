"""LocalIdentityProvider against SQLite with a low-cost bcrypt hasher."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.infrastructure.external.identity.local import LocalIdentityProvider
from app.infrastructure.security import BcryptPasswordHasher
from app.shared.enums import ProviderErrorKind


@pytest.fixture
def provider(db_session: AsyncSession) -> LocalIdentityProvider:
    return LocalIdentityProvider(db_session, BcryptPasswordHasher(rounds=4))


async def test_create_and_verify(provider: LocalIdentityProvider) -> None:
    created = await provider.create_identity("Alice@Example.com", "Secret123!", {"full_name": "Alice"})
    assert created.ok and created.value

    verified = await provider.verify_password("alice@example.com", "Secret123!")
    assert verified.ok
    assert verified.value == created.value


async def test_duplicate_email(provider: LocalIdentityProvider) -> None:
    await provider.create_identity("alice@example.com", "Secret123!", {})
    duplicate = await provider.create_identity("ALICE@example.com", "Other123!", {})
    assert not duplicate.ok
    assert duplicate.error == ProviderErrorKind.DUPLICATE


async def test_wrong_password_and_unknown_email(provider: LocalIdentityProvider) -> None:
    await provider.create_identity("alice@example.com", "Secret123!", {})
    wrong = await provider.verify_password("alice@example.com", "Secret123?")
    unknown = await provider.verify_password("nobody@example.com", "Secret123!")
    assert wrong.error == ProviderErrorKind.INVALID_CREDENTIALS
    assert unknown.error == ProviderErrorKind.NOT_FOUND


async def test_update_password(provider: LocalIdentityProvider) -> None:
    created = await provider.create_identity("alice@example.com", "Secret123!", {})
    assert (await provider.update_password(created.value, "Fresh456#")).ok
    assert (await provider.verify_password("alice@example.com", "Fresh456#")).ok
    assert not (await provider.verify_password("alice@example.com", "Secret123!")).ok

    missing = await provider.update_password("no-such-id", "Fresh456#")
    assert missing.error == ProviderErrorKind.NOT_FOUND


async def test_delete_identity(provider: LocalIdentityProvider) -> None:
    created = await provider.create_identity("alice@example.com", "Secret123!", {})
    assert (await provider.delete_identity(created.value)).ok
    assert (await provider.verify_password("alice@example.com", "Secret123!")).error == (
        ProviderErrorKind.NOT_FOUND
    )
    assert (await provider.delete_identity(created.value)).error == ProviderErrorKind.NOT_FOUND


async def test_verification_email_is_a_no_op(provider: LocalIdentityProvider) -> None:
    assert (await provider.send_verification_email("alice@example.com")).ok
