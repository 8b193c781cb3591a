"""Security event log: append-only audit trail for authentication flows.

Appending is best-effort. A store failure is logged server-side and never
turns into a user-visible error for the operation being audited.
"""

from __future__ import annotations

import logging
from typing import Any

from app.application.dtos.identity import RequestMetadata
from app.application.dtos.security import SecurityEventCreate, SecurityEventResult
from app.application.interfaces.repositories import ISecurityEventRepository
from app.shared.enums import SecurityEventType

logger = logging.getLogger(__name__)

MAX_LIST_LIMIT = 100


class SecurityEventLog:
    """Records and lists security events (ISecurityEventRepository facade)."""

    def __init__(self, repo: ISecurityEventRepository) -> None:
        self.repo = repo

    async def record(
        self,
        event_type: SecurityEventType,
        *,
        success: bool,
        identity_id: str | None = None,
        metadata: RequestMetadata | None = None,
        **details: Any,
    ) -> None:
        """Append one event; swallow and log store failures."""
        meta = metadata or RequestMetadata()
        event = SecurityEventCreate(
            event_type=event_type,
            success=success,
            identity_id=identity_id,
            ip_address=meta.ip_address,
            user_agent=meta.user_agent,
            details={k: v for k, v in details.items() if v is not None},
        )
        try:
            await self.repo.append(event)
        except Exception:
            logger.exception(
                "Failed to append security event %s (identity=%s)",
                event_type.value,
                identity_id,
            )

    async def recent(
        self, identity_id: str, limit: int = 50
    ) -> list[SecurityEventResult]:
        """Return the identity's most recent events (limit capped at 100)."""
        limit = max(1, min(limit, MAX_LIST_LIMIT))
        return await self.repo.list_for_identity(identity_id, limit=limit)
