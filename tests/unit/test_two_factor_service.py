"""Tests for TwoFactorService: setup, enable, step-up verify, recovery codes, disable."""

import re

import pytest

from app.domain.enums import TwoFactorState
from app.domain.exceptions import (
    AccountLockedException,
    ForbiddenException,
    InvalidCodeException,
    TwoFactorStateException,
)
from tests.harness import Harness


async def _enabled(harness: Harness) -> tuple[str, list[str]]:
    """Register alice and enable 2FA. Returns (secret, recovery codes)."""
    await harness.register()
    setup = await harness.two_factor.setup(await harness.identity())
    codes = await harness.two_factor.enable(
        await harness.identity(), harness.totp_code(setup.secret)
    )
    return setup.secret, codes


class TestSetupAndEnable:
    async def test_setup_provisions_secret_without_enabling(self, harness: Harness) -> None:
        await harness.register()
        result = await harness.two_factor.setup(await harness.identity())

        identity = await harness.identity()
        assert identity.two_factor_state == TwoFactorState.PROVISIONING
        assert identity.two_factor_secret == result.secret
        assert result.otpauth_url.startswith("otpauth://totp/")
        assert f"secret={result.secret}" in result.otpauth_url
        assert "issuer=Keystone" in result.otpauth_url

    async def test_setup_again_replaces_unconfirmed_secret(self, harness: Harness) -> None:
        await harness.register()
        first = await harness.two_factor.setup(await harness.identity())
        second = await harness.two_factor.setup(await harness.identity())
        assert first.secret != second.secret
        assert (await harness.identity()).two_factor_secret == second.secret

    async def test_enable_without_setup_is_rejected(self, harness: Harness) -> None:
        await harness.register()
        with pytest.raises(TwoFactorStateException):
            await harness.two_factor.enable(await harness.identity(), "123456")

    async def test_enable_with_wrong_code_stays_provisioning(self, harness: Harness) -> None:
        await harness.register()
        setup = await harness.two_factor.setup(await harness.identity())
        wrong = harness.totp_code(setup.secret, minutes=5)
        with pytest.raises(InvalidCodeException):
            await harness.two_factor.enable(await harness.identity(), wrong)
        assert (await harness.identity()).two_factor_state == TwoFactorState.PROVISIONING
        assert harness.event_types()[-1] == "2fa_enable_failed"

    async def test_enable_returns_recovery_codes_once(self, harness: Harness) -> None:
        _, codes = await _enabled(harness)

        identity = await harness.identity()
        assert identity.two_factor_state == TwoFactorState.ENABLED
        assert identity.two_factor_confirmed_at == harness.clock.now
        assert len(codes) == 10
        assert all(re.fullmatch(r"[0-9A-F]{4}-[0-9A-F]{4}-[0-9A-F]{4}", c) for c in codes)
        stored = await harness.recovery_codes.list_unused(identity.id)
        assert len(stored) == 10
        assert not any(code in record.code_hash for record in stored for code in codes)
        assert "2fa_enabled" in harness.outbox.tags()

    async def test_setup_when_enabled_is_rejected(self, harness: Harness) -> None:
        await _enabled(harness)
        with pytest.raises(TwoFactorStateException):
            await harness.two_factor.setup(await harness.identity())

    async def test_enable_twice_is_rejected(self, harness: Harness) -> None:
        secret, _ = await _enabled(harness)
        with pytest.raises(TwoFactorStateException):
            await harness.two_factor.enable(await harness.identity(), harness.totp_code(secret))


class TestVerifyLogin:
    """Second login step: TOTP within one 30s step either side, or a recovery code."""

    async def test_current_code_mints_session(self, harness: Harness) -> None:
        secret, _ = await _enabled(harness)
        session = await harness.two_factor.verify_login(
            "alice@example.com", harness.totp_code(secret)
        )
        claims = harness.signer.decode(session.token)
        assert claims.email == "alice@example.com"
        assert claims.company_id == session.current_company.company_id
        assert harness.event_repo.events[-1].details["method"] == "totp"

    async def test_adjacent_steps_are_accepted(self, harness: Harness) -> None:
        secret, _ = await _enabled(harness)
        for offset in (-30, 30):
            await harness.two_factor.verify_login(
                "alice@example.com", harness.totp_code(secret, seconds=offset)
            )

    async def test_codes_two_steps_away_are_rejected(self, harness: Harness) -> None:
        secret, _ = await _enabled(harness)
        for offset in (-60, 60):
            with pytest.raises(InvalidCodeException):
                await harness.two_factor.verify_login(
                    "alice@example.com", harness.totp_code(secret, seconds=offset)
                )
        assert harness.event_types()[-1] == "2fa_verify_failed"

    async def test_recovery_code_is_single_use(self, harness: Harness) -> None:
        _, codes = await _enabled(harness)
        assert len(set(codes)) == 10

        for used_so_far, code in enumerate(codes, start=1):
            session = await harness.two_factor.verify_login("alice@example.com", code)
            assert session.token
            used = [
                e for e in harness.event_repo.events if e.event_type == "2fa_recovery_code_used"
            ]
            assert used[-1].details["remaining"] == 10 - used_so_far

            with pytest.raises(InvalidCodeException):
                await harness.two_factor.verify_login("alice@example.com", code)

        identity = await harness.identity()
        assert await harness.recovery_codes.list_unused(identity.id) == []

    async def test_recovery_code_input_is_normalized(self, harness: Harness) -> None:
        _, codes = await _enabled(harness)
        typed = codes[1].lower().replace("-", " ")
        session = await harness.two_factor.verify_login("alice@example.com", typed)
        assert session.token

    async def test_not_enrolled_is_rejected(self, harness: Harness) -> None:
        await harness.register()
        with pytest.raises(InvalidCodeException):
            await harness.two_factor.verify_login("alice@example.com", "123456")
        with pytest.raises(InvalidCodeException):
            await harness.two_factor.verify_login("nobody@example.com", "123456")

    async def test_locked_identity_is_rejected(self, harness: Harness) -> None:
        secret, _ = await _enabled(harness)
        identity = await harness.identity()
        await harness.identities.lock(identity.id, harness.clock.now.replace(hour=13))
        with pytest.raises(AccountLockedException):
            await harness.two_factor.verify_login("alice@example.com", harness.totp_code(secret))
        event = harness.event_repo.events[-1]
        assert event.event_type == "2fa_verify_failed"
        assert event.identity_id == identity.id
        assert event.details["reason"] == "locked"
        assert event.details["remaining_minutes"] == 60

    async def test_inactive_identity_is_rejected(self, harness: Harness) -> None:
        secret, _ = await _enabled(harness)
        identity = await harness.identity()
        harness.identities.rows[identity.id].is_active = False
        with pytest.raises(ForbiddenException):
            await harness.two_factor.verify_login("alice@example.com", harness.totp_code(secret))
        event = harness.event_repo.events[-1]
        assert event.event_type == "2fa_verify_failed"
        assert event.details["reason"] == "inactive"


class TestRecoveryCodeRegeneration:
    async def test_regenerate_invalidates_previous_batch(self, harness: Harness) -> None:
        secret, old_codes = await _enabled(harness)
        new_codes = await harness.two_factor.regenerate_recovery_codes(
            await harness.identity(), harness.totp_code(secret)
        )
        assert set(new_codes).isdisjoint(old_codes)

        with pytest.raises(InvalidCodeException):
            await harness.two_factor.verify_login("alice@example.com", old_codes[0])
        await harness.two_factor.verify_login("alice@example.com", new_codes[0])

    async def test_regenerate_refuses_recovery_codes(self, harness: Harness) -> None:
        _, codes = await _enabled(harness)
        with pytest.raises(InvalidCodeException):
            await harness.two_factor.regenerate_recovery_codes(await harness.identity(), codes[0])
        identity = await harness.identity()
        assert len(await harness.recovery_codes.list_unused(identity.id)) == 10
        assert harness.event_types()[-1] == "recovery_codes_regenerate_failed"

    async def test_regenerate_requires_enabled(self, harness: Harness) -> None:
        await harness.register()
        with pytest.raises(TwoFactorStateException):
            await harness.two_factor.regenerate_recovery_codes(await harness.identity(), "123456")


class TestDisable:
    async def test_disable_with_totp_clears_secret_and_codes(self, harness: Harness) -> None:
        secret, _ = await _enabled(harness)
        await harness.two_factor.disable(await harness.identity(), harness.totp_code(secret))

        identity = await harness.identity()
        assert identity.two_factor_state == TwoFactorState.DISABLED
        assert identity.two_factor_secret is None
        assert await harness.recovery_codes.list_unused(identity.id) == []
        assert "2fa_disabled" in harness.outbox.tags()

    async def test_disable_with_recovery_code(self, harness: Harness) -> None:
        _, codes = await _enabled(harness)
        await harness.two_factor.disable(await harness.identity(), codes[3])
        assert (await harness.identity()).two_factor_state == TwoFactorState.DISABLED
        assert harness.event_repo.events[-1].details["method"] == "recovery_code"

    async def test_disable_with_wrong_code_keeps_2fa(self, harness: Harness) -> None:
        secret, _ = await _enabled(harness)
        with pytest.raises(InvalidCodeException):
            await harness.two_factor.disable(
                await harness.identity(), harness.totp_code(secret, minutes=10)
            )
        assert (await harness.identity()).two_factor_state == TwoFactorState.ENABLED
        assert harness.event_types()[-1] == "2fa_disable_failed"

    async def test_disable_when_not_enabled(self, harness: Harness) -> None:
        await harness.register()
        with pytest.raises(TwoFactorStateException):
            await harness.two_factor.disable(await harness.identity(), "123456")

    async def test_login_after_disable_skips_step_up(self, harness: Harness) -> None:
        secret, _ = await _enabled(harness)
        await harness.two_factor.disable(await harness.identity(), harness.totp_code(secret))
        result = await harness.guard.login("alice@example.com", "Secret123!")
        assert hasattr(result, "token")
