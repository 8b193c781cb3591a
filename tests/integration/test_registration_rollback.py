"""Registration over the SQL stack when a store write fails mid-saga.

A listener on the engine raises DataError for inserts into one table, the
way a value-too-long error surfaces from the driver. The shared session
must be rolled back so the saga's compensations can still delete what
earlier steps wrote.
"""

from collections.abc import Iterator
from typing import Any

import pytest
from sqlalchemy import event, func, select
from sqlalchemy.exc import DataError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from app.application.dtos.auth import RegisterCommand
from app.application.services import (
    CompanyRegistry,
    HashService,
    NotificationService,
    RegistrationService,
    RetryPolicy,
    SecurityEventLog,
    TokenIssuer,
)
from app.domain.exceptions import ValidationException
from app.infrastructure.external.identity.local import LocalIdentityProvider
from app.infrastructure.persistence.models import (
    Company,
    CompanyMembership,
    Identity,
    IdentityCredential,
    SecurityEvent,
    Subscription,
)
from app.infrastructure.persistence.repositories import (
    CompanyRepository,
    IdentityRepository,
    InvitationRepository,
    MembershipRepository,
    SecurityEventRepository,
)
from app.infrastructure.security import BcryptPasswordHasher, JwtTokenSigner
from app.infrastructure.services import SqlSubscriptionProvisioner
from tests.fakes import RecordingEmailDispatcher


class InsertFailure:
    """Raises DataError for INSERTs into the armed table."""

    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine.sync_engine
        self.table: str | None = None
        self.raised = 0

    def __call__(
        self,
        conn: Any,
        cursor: Any,
        statement: str,
        parameters: Any,
        context: Any,
        executemany: bool,
    ) -> None:
        prefix = f"insert into {self.table} " if self.table else None
        if prefix and statement.lstrip().lower().startswith(prefix):
            self.raised += 1
            raise DataError(statement, parameters, Exception("value too long for column"))


@pytest.fixture
def insert_failure(engine: AsyncEngine) -> Iterator[InsertFailure]:
    failure = InsertFailure(engine)
    event.listen(failure.engine, "before_cursor_execute", failure)
    yield failure
    event.remove(failure.engine, "before_cursor_execute", failure)


@pytest.fixture
def registration(db_session: AsyncSession) -> RegistrationService:
    async def _no_sleep(delay: float) -> None:
        return None

    memberships = MembershipRepository(db_session)
    events = SecurityEventLog(SecurityEventRepository(db_session))
    registry = CompanyRegistry(
        CompanyRepository(db_session),
        memberships,
        SqlSubscriptionProvisioner(db_session),
    )
    return RegistrationService(
        IdentityRepository(db_session),
        memberships,
        InvitationRepository(db_session),
        LocalIdentityProvider(db_session, BcryptPasswordHasher(rounds=4)),
        registry,
        TokenIssuer(JwtTokenSigner("integration-secret"), registry, events),
        events,
        NotificationService(
            RecordingEmailDispatcher(), app_name="Keystone", frontend_url="https://app.test"
        ),
        HashService(),
        profile_retry=RetryPolicy(max_attempts=2, backoff_seconds=0, sleep=_no_sleep),
    )


def _command() -> RegisterCommand:
    return RegisterCommand(
        email="alice@example.com",
        password="Secret123!",
        full_name="Alice",
        company_name="Alice Co",
    )


async def _count(db: AsyncSession, model: type) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


@pytest.mark.parametrize("table", ["company", "company_membership"])
async def test_company_step_failure_leaves_no_orphans(
    db_session: AsyncSession,
    registration: RegistrationService,
    insert_failure: InsertFailure,
    table: str,
) -> None:
    insert_failure.table = table

    with pytest.raises(ValidationException):
        await registration.register(_command())

    assert insert_failure.raised == 1
    insert_failure.table = None
    assert await _count(db_session, IdentityCredential) == 0
    assert await _count(db_session, Identity) == 0
    assert await _count(db_session, Company) == 0
    assert await _count(db_session, CompanyMembership) == 0
    failed = (
        await db_session.execute(
            select(SecurityEvent).where(SecurityEvent.event_type == "register_failed")
        )
    ).scalar_one()
    assert failed.details["email"] == "alice@example.com"


async def test_subscription_failure_still_returns_session(
    db_session: AsyncSession,
    registration: RegistrationService,
    insert_failure: InsertFailure,
) -> None:
    insert_failure.table = "subscription"

    session = await registration.register(_command())

    assert insert_failure.raised == 1
    insert_failure.table = None
    assert session.token
    assert session.current_company is not None
    assert session.current_company.company_slug == "alice-co"
    assert await _count(db_session, IdentityCredential) == 1
    assert await _count(db_session, Identity) == 1
    assert await _count(db_session, CompanyMembership) == 1
    assert await _count(db_session, Subscription) == 0


async def test_session_usable_after_repository_data_error(
    db_session: AsyncSession, insert_failure: InsertFailure
) -> None:
    companies = CompanyRepository(db_session)
    insert_failure.table = "company"
    with pytest.raises(ValidationException):
        await companies.create(name="Alice Co", slug="alice-co")

    insert_failure.table = None
    assert not await companies.slug_exists("alice-co")
    created = await companies.create(name="Alice Co", slug="alice-co")
    assert created.slug == "alice-co"
