"""Outbound transactional email delivery."""

from app.infrastructure.external.email.dispatchers import (
    EmailDeliveryError,
    LogOnlyEmailDispatcher,
    ResendEmailDispatcher,
)

__all__ = [
    "EmailDeliveryError",
    "LogOnlyEmailDispatcher",
    "ResendEmailDispatcher",
]
