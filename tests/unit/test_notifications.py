"""Tests for email templates, NotificationService delivery and display-text sanitization."""

import pytest

from app.application.services.email_templates import EmailTemplateRenderer
from app.application.services.notification_service import (
    NotificationService,
    redact_email,
)
from app.domain.entities.identity import IdentityEntity
from app.shared.utils.sanitization import clean_display_text, strip_html
from tests.fakes import RecordingEmailDispatcher


def _identity(full_name: str = "Alice") -> IdentityEntity:
    return IdentityEntity(id="id-1", email="alice@example.com", full_name=full_name)


class TestEmailTemplateRenderer:
    def test_all_transactional_templates_exist(self) -> None:
        assert set(EmailTemplateRenderer().keys) == {
            "welcome",
            "password_reset",
            "2fa_enabled",
            "2fa_disabled",
            "password_changed",
        }

    def test_html_is_escaped_but_text_is_not(self) -> None:
        subject, html, text = EmailTemplateRenderer().render(
            "welcome",
            app_name="Keystone",
            full_name="<b>Al</b>",
            company_name="A & B",
            login_url="https://app.test/login",
        )
        assert subject == "Welcome to Keystone"
        assert "&lt;b&gt;Al&lt;/b&gt;" in html
        assert "A &amp; B" in html
        assert "Hi <b>Al</b>," in text
        assert "A & B" in text

    def test_unknown_key(self) -> None:
        with pytest.raises(KeyError):
            EmailTemplateRenderer().render("no_such_template")


class TestNotificationService:
    async def test_password_reset_link(self) -> None:
        outbox = RecordingEmailDispatcher()
        notifier = NotificationService(outbox, frontend_url="https://app.test/")
        assert await notifier.password_reset(_identity(), "tok-123", 60)

        message = outbox.sent[0]
        assert message.to == "alice@example.com"
        assert message.tag == "password_reset"
        assert "https://app.test/reset-password?token=tok-123" in message.text
        assert "60 minutes" in message.text

    async def test_delivery_failure_returns_false(self) -> None:
        outbox = RecordingEmailDispatcher()
        outbox.fail = True
        assert await NotificationService(outbox).password_changed(_identity()) is False

    def test_redact_email(self) -> None:
        assert "alice@example.com" not in redact_email("alice@example.com")
        assert redact_email("not an email") == "redacted"


class TestSanitization:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("Alice", "Alice"),
            ("<script>alert(1)</script>Alice", "Alice"),
            ("<b>Bold</b> Co", "Bold Co"),
            ("Alice & Co", "Alice & Co"),
            ("  padded  ", "padded"),
            ("", ""),
        ],
    )
    def test_strip_html(self, raw: str, expected: str) -> None:
        assert strip_html(raw) == expected

    def test_clean_display_text_keeps_none(self) -> None:
        assert clean_display_text(None) is None
        assert clean_display_text("<i>x</i>") == "x"
