"""Token issuer: mints session tokens scoped to one active company and switches companies."""

from __future__ import annotations

import logging

from app.application.dtos.auth import SessionResult, TokenClaims
from app.application.dtos.company import MembershipResult
from app.application.dtos.identity import RequestMetadata
from app.application.interfaces.services import ITokenSigner
from app.application.services.company_registry import CompanyRegistry
from app.application.services.security_event_log import SecurityEventLog
from app.domain.entities.identity import IdentityEntity
from app.domain.exceptions import ResourceNotFoundException
from app.shared.enums import SecurityEventType
from app.shared.telemetry.tracing import traced

logger = logging.getLogger(__name__)


class TokenIssuer:
    """Builds session tokens and membership payloads.

    The token's company must be an active membership at mint time. The role
    claim is the membership role in that company, or the profile role when
    the identity has no active membership.
    """

    def __init__(
        self,
        signer: ITokenSigner,
        registry: CompanyRegistry,
        events: SecurityEventLog,
    ) -> None:
        self.signer = signer
        self.registry = registry
        self.events = events

    def mint(
        self,
        identity: IdentityEntity,
        companies: list[MembershipResult],
        current: MembershipResult | None,
    ) -> SessionResult:
        role = current.role.value if current is not None else identity.role
        claims = TokenClaims(
            sub=identity.id,
            email=identity.email,
            role=role,
            company_id=current.company_id if current is not None else None,
        )
        return SessionResult(
            token=self.signer.encode(claims),
            identity=identity,
            role=role,
            companies=companies,
            current_company=current,
        )

    async def issue(
        self, identity: IdentityEntity, company_id: str | None = None
    ) -> SessionResult:
        """Mint a token for identity.

        Uses company_id when it is one of the identity's active memberships;
        otherwise the default company (earliest joined active membership).
        """
        companies = await self.registry.list_memberships(identity.id)
        current = None
        if company_id is not None:
            current = next((m for m in companies if m.company_id == company_id), None)
        if current is None and companies:
            current = companies[0]
        return self.mint(identity, companies, current)

    @traced("auth.switch_company")
    async def switch_company(
        self,
        identity: IdentityEntity,
        company_id: str,
        metadata: RequestMetadata | None = None,
    ) -> SessionResult:
        """Mint a token scoped to company_id.

        Raises:
            ResourceNotFoundException: No active membership for (identity, company); no token is minted.
        """
        membership = await self.registry.check_membership(company_id, identity.id)
        if membership is None:
            raise ResourceNotFoundException("Company membership", company_id)
        companies = await self.registry.list_memberships(identity.id)
        session = self.mint(identity, companies, membership)
        await self.events.record(
            SecurityEventType.COMPANY_SWITCHED,
            success=True,
            identity_id=identity.id,
            metadata=metadata,
            company_id=company_id,
        )
        logger.info("Identity %s switched to company %s", identity.id, company_id)
        return session
