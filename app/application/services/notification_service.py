"""Best-effort transactional notifications (welcome, reset, 2FA, password change).

Delivery failures are logged and reported as False; they never fail the
calling flow.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlencode

from app.application.dtos.notification import EmailMessage
from app.application.interfaces.services import IEmailDispatcher
from app.application.services.email_templates import EmailTemplateRenderer
from app.domain.entities.identity import IdentityEntity
from app.domain.value_objects.core import EmailAddress

logger = logging.getLogger(__name__)


def redact_email(email: str) -> str:
    """Return a log-safe form of an email address."""
    try:
        return EmailAddress.normalize(email).redacted()
    except ValueError:
        return "redacted"


class NotificationService:
    """Renders templates and hands messages to the email dispatcher."""

    def __init__(
        self,
        dispatcher: IEmailDispatcher,
        *,
        app_name: str = "Keystone",
        frontend_url: str = "http://localhost:3000",
        renderer: EmailTemplateRenderer | None = None,
    ) -> None:
        self.dispatcher = dispatcher
        self.app_name = app_name
        self.frontend_url = frontend_url.rstrip("/")
        self.renderer = renderer or EmailTemplateRenderer()

    def reset_url(self, token: str) -> str:
        return f"{self.frontend_url}/reset-password?{urlencode({'token': token})}"

    async def welcome(self, identity: IdentityEntity, company_name: str | None) -> bool:
        return await self._deliver(
            "welcome",
            identity,
            company_name=company_name,
            login_url=f"{self.frontend_url}/login",
        )

    async def password_reset(
        self, identity: IdentityEntity, token: str, ttl_minutes: int
    ) -> bool:
        return await self._deliver(
            "password_reset",
            identity,
            reset_url=self.reset_url(token),
            ttl_minutes=ttl_minutes,
        )

    async def two_factor_enabled(self, identity: IdentityEntity) -> bool:
        return await self._deliver("2fa_enabled", identity)

    async def two_factor_disabled(self, identity: IdentityEntity) -> bool:
        return await self._deliver("2fa_disabled", identity)

    async def password_changed(self, identity: IdentityEntity) -> bool:
        return await self._deliver("password_changed", identity)

    async def _deliver(self, tag: str, identity: IdentityEntity, **context: Any) -> bool:
        to = identity.email
        try:
            subject, html, text = self.renderer.render(
                tag, app_name=self.app_name, full_name=identity.full_name, **context
            )
            await self.dispatcher.send(
                EmailMessage(to=to, subject=subject, html=html, text=text, tag=tag)
            )
        except Exception as e:
            logger.warning(
                "Email %s to %s failed: %s: %s",
                tag,
                redact_email(to),
                type(e).__name__,
                e,
            )
            return False
        return True
