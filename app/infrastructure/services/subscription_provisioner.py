"""Default subscription provisioning (free plan with a trial) for new companies."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from app.infrastructure.persistence.models.subscription import Subscription
from app.infrastructure.persistence.repositories.base import BaseRepository
from app.shared.enums import SubscriptionStatus
from app.shared.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class SqlSubscriptionProvisioner(BaseRepository[Subscription]):
    """ISubscriptionProvisioner writing one subscription row per company."""

    def __init__(
        self,
        db: AsyncSession,
        *,
        plan: str = "free",
        trial_days: int = 30,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        super().__init__(db, Subscription)
        self.plan = plan
        self.trial_days = trial_days
        self.clock = clock

    async def provision_default(self, company_id: str) -> None:
        """Insert the default plan row. Raises ConflictException if one already exists."""
        await self.add(
            Subscription(
                company_id=company_id,
                plan=self.plan,
                status=SubscriptionStatus.TRIALING.value,
                trial_ends_at=self.clock() + timedelta(days=self.trial_days),
            ),
            conflict_message="Company already has a subscription",
        )
        logger.info("Provisioned %s subscription for company %s", self.plan, company_id)
