"""Tests for CompanyRegistry: slug generation, company creation, default subscription."""

import pytest

from app.application.services.company_registry import CompanyRegistry, to_base36
from app.domain.enums import MembershipRole
from app.domain.exceptions import (
    ConflictException,
    StoreUnavailableException,
    ValidationException,
)
from tests.fakes import (
    FakeClock,
    FakeCompanyRepository,
    FakeMembershipRepository,
    FakeSubscriptionProvisioner,
)


class _AlwaysTaken(FakeCompanyRepository):
    """Every slug lookup reports a collision."""

    async def slug_exists(self, slug: str) -> bool:
        return True


class _RacingCompanies(FakeCompanyRepository):
    """The first `races` inserts lose to a concurrent registration."""

    def __init__(self, races: int) -> None:
        super().__init__()
        self.races = races
        self.attempted: list[str] = []

    async def create(self, name: str, slug: str):
        self.attempted.append(slug)
        if self.races > 0:
            self.races -= 1
            raise ConflictException("Company slug already exists")
        return await super().create(name, slug)


def _registry(companies: FakeCompanyRepository | None = None, **kwargs) -> CompanyRegistry:
    clock = FakeClock()
    companies = companies or FakeCompanyRepository()
    return CompanyRegistry(
        companies,
        FakeMembershipRepository(companies, clock),
        kwargs.pop("subscriptions", FakeSubscriptionProvisioner()),
        clock=clock,
        **kwargs,
    )


@pytest.mark.parametrize(
    ("value", "expected"),
    [(0, "0"), (35, "z"), (36, "10"), (1295, "zz"), (1296, "100")],
)
def test_to_base36(value: int, expected: str) -> None:
    assert to_base36(value) == expected


class TestSlugGeneration:
    async def test_free_base_slug_is_used_as_is(self) -> None:
        assert await _registry().generate_unique_slug("Acme Corp") == "acme-corp"

    async def test_collision_gets_random_suffix(self) -> None:
        companies = FakeCompanyRepository()
        companies.taken_slugs.add("acme")
        slug = await _registry(companies).generate_unique_slug("Acme")
        assert slug.startswith("acme-")
        suffix = slug.removeprefix("acme-")
        assert len(suffix) == 6
        assert suffix.isalnum() and suffix == suffix.lower()

    async def test_exhausted_random_suffixes_fall_back_to_timestamp(self) -> None:
        registry = _registry(_AlwaysTaken(), slug_max_random_attempts=2)
        slug = await registry.generate_unique_slug("Acme")
        expected = to_base36(int(registry.clock().timestamp() * 1000))
        assert slug == f"acme-{expected}"


class TestCreateCompany:
    async def test_creates_company_and_admin_membership(self) -> None:
        registry = _registry()
        company, membership = await registry.create_company("  Acme Corp ", "id-1")
        assert company.name == "Acme Corp"
        assert company.slug == "acme-corp"
        assert membership.company_id == company.id
        assert membership.identity_id == "id-1"
        assert membership.role == MembershipRole.ADMIN

    async def test_blank_name_is_rejected(self) -> None:
        with pytest.raises(ValidationException):
            await _registry().create_company("   ", "id-1")

    async def test_concurrent_slug_conflict_is_retried(self) -> None:
        companies = _RacingCompanies(races=2)
        company, _ = await _registry(companies).create_company("Acme", "id-1")
        assert len(companies.attempted) == 3
        assert company.id in companies.rows

    async def test_gives_up_after_max_attempts(self) -> None:
        companies = _RacingCompanies(races=10)
        with pytest.raises(ConflictException, match="try again"):
            await _registry(companies, create_max_attempts=3).create_company("Acme", "id-1")
        assert len(companies.attempted) == 3
        assert companies.rows == {}

    async def test_membership_failure_removes_company(self) -> None:
        registry = _registry()
        registry.memberships.fail_create = True
        with pytest.raises(StoreUnavailableException):
            await registry.create_company("Acme", "id-1")
        assert registry.companies.rows == {}

    async def test_remove_company_deletes_membership_then_company(self) -> None:
        registry = _registry()
        company, membership = await registry.create_company("Acme", "id-1")
        await registry.remove_company(company.id, membership.id)
        assert registry.companies.rows == {}
        assert await registry.list_memberships("id-1") == []


class TestDefaultSubscription:
    async def test_provisioned(self) -> None:
        registry = _registry()
        assert await registry.provision_default_subscription("co-1") is True
        assert registry.subscriptions.provisioned == ["co-1"]

    async def test_failure_is_reported_not_raised(self) -> None:
        registry = _registry()
        registry.subscriptions.fail = True
        assert await registry.provision_default_subscription("co-1") is False

    async def test_without_provisioner(self) -> None:
        registry = _registry(subscriptions=None)
        assert await registry.provision_default_subscription("co-1") is False
