"""Tests for CredentialGuard: password login, lockout window, step-up signal."""

from datetime import timedelta

import pytest

from app.application.dtos.auth import SessionResult, TwoFactorChallenge
from app.domain.exceptions import (
    AccountLockedException,
    ForbiddenException,
    InternalException,
    InvalidCredentialsException,
)
from tests.harness import PASSWORD, Harness


async def _fail(harness: Harness, times: int, email: str = "alice@example.com") -> None:
    for _ in range(times):
        with pytest.raises(InvalidCredentialsException):
            await harness.guard.login(email, "Wrong123!")


async def test_login_returns_session_scoped_to_default_company(harness: Harness) -> None:
    registered = await harness.register()
    result = await harness.guard.login("alice@example.com", PASSWORD)

    assert isinstance(result, SessionResult)
    claims = harness.signer.decode(result.token)
    assert claims.sub == registered.identity.id
    assert claims.company_id == registered.current_company.company_id
    assert claims.role == "admin"
    assert (await harness.identity()).last_login == harness.clock.now
    assert "login_success" in harness.event_types()


async def test_email_is_normalized(harness: Harness) -> None:
    await harness.register()
    result = await harness.guard.login("  ALICE@Example.com ", PASSWORD)
    assert isinstance(result, SessionResult)


async def test_unknown_email_and_wrong_password_are_indistinguishable(
    harness: Harness,
) -> None:
    await harness.register()
    with pytest.raises(InvalidCredentialsException) as unknown:
        await harness.guard.login("nobody@example.com", PASSWORD)
    with pytest.raises(InvalidCredentialsException) as wrong:
        await harness.guard.login("alice@example.com", "Wrong123!")
    assert unknown.value.message == wrong.value.message


async def test_unknown_email_is_logged_without_identity(harness: Harness) -> None:
    with pytest.raises(InvalidCredentialsException):
        await harness.guard.login("nobody@example.com", PASSWORD)
    event = harness.event_repo.events[-1]
    assert event.event_type == "login_failed"
    assert event.identity_id is None
    assert event.details["reason"] == "unknown_email"


async def test_failures_below_threshold_do_not_lock(harness: Harness) -> None:
    await harness.register()
    await _fail(harness, 4)
    identity = await harness.identity()
    assert identity.failed_login_attempts == 4
    assert identity.locked_until is None


async def test_fifth_failure_locks_for_window(harness: Harness) -> None:
    await harness.register()
    await _fail(harness, 5)
    identity = await harness.identity()
    assert identity.failed_login_attempts == 5
    assert identity.locked_until == harness.clock.now + timedelta(minutes=30)
    assert harness.event_types().count("account_locked") == 1


async def test_locked_account_rejects_correct_password_without_provider_call(
    harness: Harness,
) -> None:
    await harness.register()
    await _fail(harness, 5)
    # a provider call would now surface as InternalException
    harness.provider.unavailable = True

    with pytest.raises(AccountLockedException) as exc_info:
        await harness.guard.login("alice@example.com", PASSWORD)
    assert exc_info.value.remaining_minutes == 30
    assert harness.event_types()[-1] == "login_blocked"


async def test_remaining_minutes_round_up(harness: Harness) -> None:
    await harness.register()
    await _fail(harness, 5)
    harness.clock.advance(minutes=29, seconds=30)
    with pytest.raises(AccountLockedException) as exc_info:
        await harness.guard.login("alice@example.com", PASSWORD)
    assert exc_info.value.remaining_minutes == 1


async def test_lock_expires_after_window(harness: Harness) -> None:
    await harness.register()
    await _fail(harness, 5)
    harness.clock.advance(minutes=30)

    result = await harness.guard.login("alice@example.com", PASSWORD)
    assert isinstance(result, SessionResult)
    identity = await harness.identity()
    assert identity.failed_login_attempts == 0
    assert identity.locked_until is None
    assert "account_unlocked" in harness.event_types()


async def test_counter_restarts_after_expired_lock(harness: Harness) -> None:
    await harness.register()
    await _fail(harness, 5)
    harness.clock.advance(minutes=31)
    await _fail(harness, 1)
    identity = await harness.identity()
    assert identity.failed_login_attempts == 1
    assert identity.locked_until is None


async def test_successful_login_resets_counter(harness: Harness) -> None:
    await harness.register()
    await _fail(harness, 3)
    await harness.guard.login("alice@example.com", PASSWORD)
    await _fail(harness, 4)
    identity = await harness.identity()
    assert identity.failed_login_attempts == 4
    assert identity.locked_until is None


async def test_provider_outage_is_not_counted(harness: Harness) -> None:
    await harness.register()
    harness.provider.unavailable = True
    with pytest.raises(InternalException):
        await harness.guard.login("alice@example.com", PASSWORD)
    assert (await harness.identity()).failed_login_attempts == 0


async def test_unconfirmed_email_is_forbidden_and_not_counted(harness: Harness) -> None:
    registered = await harness.register()
    harness.provider.unconfirmed.add("alice@example.com")

    for _ in range(6):
        with pytest.raises(ForbiddenException, match="not confirmed"):
            await harness.guard.login("alice@example.com", PASSWORD)

    identity = await harness.identity()
    assert identity.failed_login_attempts == 0
    assert identity.locked_until is None
    assert "account_locked" not in harness.event_types()
    event = harness.event_repo.events[-1]
    assert event.event_type == "login_failed"
    assert event.identity_id == registered.identity.id
    assert event.details["reason"] == "email_not_confirmed"


async def test_two_factor_enabled_returns_challenge_without_token(harness: Harness) -> None:
    registered = await harness.register()
    await harness.identities.set_two_factor_secret(
        registered.identity.id, "JBSWY3DPEHPK3PXP", harness.clock.now
    )
    await harness.identities.enable_two_factor(registered.identity.id, harness.clock.now)

    result = await harness.guard.login("alice@example.com", PASSWORD)
    assert result == TwoFactorChallenge(email="alice@example.com")
    assert harness.event_types()[-1] == "login_2fa_required"


async def test_deactivated_account_is_forbidden(harness: Harness) -> None:
    registered = await harness.register()
    harness.identities.rows[registered.identity.id].is_active = False
    with pytest.raises(ForbiddenException):
        await harness.guard.login("alice@example.com", PASSWORD)
