"""Company registry: company creation with unique slugs, memberships, default subscription."""

from __future__ import annotations

import logging
import secrets
import string
from collections.abc import Callable
from datetime import datetime

from app.application.dtos.company import CompanyResult, MembershipResult
from app.application.interfaces.repositories import (
    ICompanyRepository,
    IMembershipRepository,
)
from app.application.interfaces.services import ISubscriptionProvisioner
from app.domain.entities.company import MembershipEntity
from app.domain.enums import MembershipRole
from app.domain.exceptions import ConflictException, ValidationException
from app.domain.value_objects.core import MAX_NAME_LENGTH, CompanySlug
from app.shared.utils.datetime import utc_now

logger = logging.getLogger(__name__)

_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits
_SUFFIX_LENGTH = 6
_BASE36_DIGITS = string.digits + string.ascii_lowercase


def _random_suffix() -> str:
    return "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(_SUFFIX_LENGTH))


def to_base36(value: int) -> str:
    """Encode a non-negative integer in base 36 (lowercase)."""
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36_DIGITS[rem])
    return "".join(reversed(digits))


class CompanyRegistry:
    """Creates companies with their owner membership and answers membership queries.

    Company names need not be unique; slugs must be. On slug collision a
    random suffix is tried a bounded number of times, then a base-36
    timestamp suffix. The insert itself is retried when a concurrent
    registration takes the slug first.
    """

    def __init__(
        self,
        companies: ICompanyRepository,
        memberships: IMembershipRepository,
        subscriptions: ISubscriptionProvisioner | None = None,
        *,
        slug_max_random_attempts: int = 10,
        create_max_attempts: int = 3,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.companies = companies
        self.memberships = memberships
        self.subscriptions = subscriptions
        self.slug_max_random_attempts = slug_max_random_attempts
        self.create_max_attempts = create_max_attempts
        self.clock = clock

    async def generate_unique_slug(self, name: str) -> str:
        base = CompanySlug.from_name(name)
        if not await self.companies.slug_exists(base.value):
            return base.value
        for _ in range(self.slug_max_random_attempts):
            candidate = base.with_suffix(_random_suffix())
            if not await self.companies.slug_exists(candidate.value):
                return candidate.value
        timestamp_ms = int(self.clock().timestamp() * 1000)
        return base.with_suffix(to_base36(timestamp_ms)).value

    async def create_company(
        self, name: str, owner_id: str
    ) -> tuple[CompanyResult, MembershipEntity]:
        """Create a company and its admin membership for owner_id.

        A company is never left without a member: if the membership insert
        fails the company row is deleted before the error propagates.

        Raises:
            ValidationException: If name is blank or longer than MAX_NAME_LENGTH.
            ConflictException: If no unique slug could be inserted.
        """
        name = name.strip()
        if not name:
            raise ValidationException("Company name is required", field="companyName")
        if len(name) > MAX_NAME_LENGTH:
            raise ValidationException(
                f"Company name must be at most {MAX_NAME_LENGTH} characters",
                field="companyName",
            )
        company: CompanyResult | None = None
        for attempt in range(1, self.create_max_attempts + 1):
            slug = await self.generate_unique_slug(name)
            try:
                company = await self.companies.create(name=name, slug=slug)
                break
            except ConflictException:
                logger.warning(
                    "Company slug %s taken concurrently (attempt %d/%d)",
                    slug,
                    attempt,
                    self.create_max_attempts,
                )
        if company is None:
            raise ConflictException("Could not create company; please try again")

        try:
            membership = await self.memberships.create(
                identity_id=owner_id,
                company_id=company.id,
                role=MembershipRole.ADMIN,
            )
        except Exception:
            logger.warning("Admin membership for company %s failed; removing company", company.id)
            try:
                await self.companies.delete(company.id)
            except Exception:
                logger.exception("Failed to remove company %s without members", company.id)
            raise
        logger.info("Company %s (%s) created for identity %s", company.id, company.slug, owner_id)
        return company, membership

    async def remove_company(self, company_id: str, membership_id: str) -> None:
        """Delete the owner membership then the company (registration compensation)."""
        await self.memberships.delete(membership_id)
        await self.companies.delete(company_id)

    async def provision_default_subscription(self, company_id: str) -> bool:
        """Create the default subscription; failure is logged and reported as False."""
        if self.subscriptions is None:
            return False
        try:
            await self.subscriptions.provision_default(company_id)
        except Exception:
            logger.exception("Default subscription for company %s failed", company_id)
            return False
        return True

    async def list_memberships(self, identity_id: str) -> list[MembershipResult]:
        return await self.memberships.list_for_identity(identity_id)

    async def check_membership(
        self, company_id: str, identity_id: str
    ) -> MembershipResult | None:
        return await self.memberships.get_active(identity_id, company_id)
