"""Auth endpoints: register, login, current identity, profile, companies, logout."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status

from app.api.v1.dependencies import (
    CurrentCaller,
    Metadata,
    get_credential_guard,
    get_identity_service,
    get_registration_service,
    get_token_issuer,
)
from app.application.dtos.auth import RegisterCommand, TwoFactorChallenge
from app.application.dtos.identity import ProfileUpdate
from app.application.services import (
    CredentialGuard,
    IdentityService,
    RegistrationService,
    TokenIssuer,
)
from app.core.limiter import limit_forgot_password, limit_login, limit_register
from app.schemas.auth import (
    CompanyResponse,
    LoginRequest,
    MeResponse,
    RegisterRequest,
    ResendVerificationRequest,
    SecurityEventResponse,
    SessionResponse,
    SwitchCompanyRequest,
    SwitchCompanyResponse,
    TwoFactorChallengeResponse,
    UpdateProfileRequest,
    UserResponse,
)
from app.schemas.common import ApiResponse, MessageResponse

router = APIRouter()


@router.post(
    "/register",
    response_model=ApiResponse[SessionResponse],
    status_code=status.HTTP_201_CREATED,
)
@limit_register
async def register(
    request: Request,
    body: RegisterRequest,
    metadata: Metadata,
    service: Annotated[RegistrationService, Depends(get_registration_service)],
) -> ApiResponse[SessionResponse]:
    """Create an identity with its own company, or join a company by invitation."""
    session = await service.register(
        RegisterCommand(
            email=str(body.email),
            password=body.password,
            full_name=body.full_name,
            company_name=body.company_name,
            invitation_token=body.invitation_token,
        ),
        metadata,
    )
    return ApiResponse(
        data=SessionResponse.from_session(session),
        message="Registration successful",
    )


@router.post(
    "/login",
    response_model=ApiResponse[SessionResponse | TwoFactorChallengeResponse],
)
@limit_login
async def login(
    request: Request,
    body: LoginRequest,
    metadata: Metadata,
    guard: Annotated[CredentialGuard, Depends(get_credential_guard)],
) -> ApiResponse[SessionResponse | TwoFactorChallengeResponse]:
    """Password login. With 2FA enabled the response carries only the step-up signal."""
    result = await guard.login(str(body.email), body.password, metadata)
    if isinstance(result, TwoFactorChallenge):
        return ApiResponse(
            data=TwoFactorChallengeResponse(email=result.email),
            message="Two-factor authentication required",
        )
    return ApiResponse(data=SessionResponse.from_session(result), message="Login successful")


@router.get("/me", response_model=ApiResponse[MeResponse])
async def me(
    caller: CurrentCaller,
    service: Annotated[IdentityService, Depends(get_identity_service)],
) -> ApiResponse[MeResponse]:
    """Current identity, its active memberships and the token's selected company."""
    companies = await service.companies(caller.identity)
    current = next(
        (m for m in companies if m.company_id == caller.claims.company_id), None
    )
    return ApiResponse(
        data=MeResponse(
            user=UserResponse.from_entity(caller.identity),
            companies=[CompanyResponse.from_membership(m) for m in companies],
            current_company=CompanyResponse.from_membership(current) if current else None,
        )
    )


@router.put("/profile", response_model=ApiResponse[UserResponse])
async def update_profile(
    body: UpdateProfileRequest,
    caller: CurrentCaller,
    service: Annotated[IdentityService, Depends(get_identity_service)],
) -> ApiResponse[UserResponse]:
    updated = await service.update_profile(
        caller.identity,
        ProfileUpdate(full_name=body.full_name, avatar_url=body.avatar_url),
    )
    return ApiResponse(data=UserResponse.from_entity(updated), message="Profile updated")


@router.get("/companies", response_model=ApiResponse[list[CompanyResponse]])
async def list_companies(
    caller: CurrentCaller,
    service: Annotated[IdentityService, Depends(get_identity_service)],
) -> ApiResponse[list[CompanyResponse]]:
    companies = await service.companies(caller.identity)
    return ApiResponse(data=[CompanyResponse.from_membership(m) for m in companies])


@router.post("/switch-company", response_model=ApiResponse[SwitchCompanyResponse])
async def switch_company(
    body: SwitchCompanyRequest,
    caller: CurrentCaller,
    metadata: Metadata,
    issuer: Annotated[TokenIssuer, Depends(get_token_issuer)],
) -> ApiResponse[SwitchCompanyResponse]:
    """Mint a token scoped to another company the caller is an active member of."""
    session = await issuer.switch_company(caller.identity, body.company_id, metadata)
    return ApiResponse(
        data=SwitchCompanyResponse.from_session(session),
        message="Company switched",
    )


@router.post("/resend-verification", response_model=MessageResponse)
@limit_forgot_password
async def resend_verification(
    request: Request,
    body: ResendVerificationRequest,
    service: Annotated[IdentityService, Depends(get_identity_service)],
) -> MessageResponse:
    """Always succeeds so the response does not reveal whether the email is registered."""
    await service.resend_verification(str(body.email))
    return MessageResponse(
        message="If an account exists for this email, a verification email has been sent"
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    caller: CurrentCaller,
    metadata: Metadata,
    service: Annotated[IdentityService, Depends(get_identity_service)],
) -> MessageResponse:
    """Tokens are stateless; the client discards its token."""
    await service.logout(caller.identity, metadata)
    return MessageResponse(message="Logged out")


@router.get("/security-events", response_model=ApiResponse[list[SecurityEventResponse]])
async def security_events(
    caller: CurrentCaller,
    service: Annotated[IdentityService, Depends(get_identity_service)],
    limit: Annotated[int, Query(ge=1, le=100)] = 50,
) -> ApiResponse[list[SecurityEventResponse]]:
    """The caller's own most recent security events, newest first."""
    events = await service.security_events(caller.identity, limit=limit)
    return ApiResponse(data=[SecurityEventResponse.from_result(e) for e in events])
