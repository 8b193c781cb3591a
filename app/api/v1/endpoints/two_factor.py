"""Two-factor authentication endpoints (mounted under /auth/2fa)."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from app.api.v1.dependencies import CurrentCaller, Metadata, get_two_factor_service
from app.application.services import TwoFactorService
from app.core.limiter import limit_login
from app.schemas.auth import SessionResponse
from app.schemas.common import ApiResponse
from app.schemas.two_factor import (
    RecoveryCodesResponse,
    TwoFactorCodeRequest,
    TwoFactorEnableResponse,
    TwoFactorSetupResponse,
    TwoFactorStatusResponse,
    TwoFactorVerifyRequest,
)

router = APIRouter()

TwoFactor = Annotated[TwoFactorService, Depends(get_two_factor_service)]


@router.post("/verify", response_model=ApiResponse[SessionResponse])
@limit_login
async def verify(
    request: Request,
    body: TwoFactorVerifyRequest,
    metadata: Metadata,
    service: TwoFactor,
) -> ApiResponse[SessionResponse]:
    """Second login step with a TOTP code or a recovery code."""
    session = await service.verify_login(str(body.email), body.code, metadata)
    return ApiResponse(data=SessionResponse.from_session(session), message="Login successful")


@router.post("/setup", response_model=ApiResponse[TwoFactorSetupResponse])
async def setup(
    caller: CurrentCaller, metadata: Metadata, service: TwoFactor
) -> ApiResponse[TwoFactorSetupResponse]:
    """Provision a secret; 2FA is enabled only after /enable confirms a code."""
    result = await service.setup(caller.identity, metadata)
    return ApiResponse(
        data=TwoFactorSetupResponse(secret=result.secret, otpauth_url=result.otpauth_url)
    )


@router.post("/enable", response_model=ApiResponse[TwoFactorEnableResponse])
async def enable(
    body: TwoFactorCodeRequest,
    caller: CurrentCaller,
    metadata: Metadata,
    service: TwoFactor,
) -> ApiResponse[TwoFactorEnableResponse]:
    codes = await service.enable(caller.identity, body.code, metadata)
    return ApiResponse(
        data=TwoFactorEnableResponse(enabled=True, recovery_codes=codes),
        message="Two-factor authentication enabled. Store the recovery codes safely.",
    )


@router.post("/disable", response_model=ApiResponse[TwoFactorStatusResponse])
async def disable(
    body: TwoFactorCodeRequest,
    caller: CurrentCaller,
    metadata: Metadata,
    service: TwoFactor,
) -> ApiResponse[TwoFactorStatusResponse]:
    """Accepts a TOTP code or a recovery code."""
    await service.disable(caller.identity, body.code, metadata)
    return ApiResponse(
        data=TwoFactorStatusResponse(enabled=False),
        message="Two-factor authentication disabled",
    )


@router.post("/recovery-codes", response_model=ApiResponse[RecoveryCodesResponse])
async def regenerate_recovery_codes(
    body: TwoFactorCodeRequest,
    caller: CurrentCaller,
    metadata: Metadata,
    service: TwoFactor,
) -> ApiResponse[RecoveryCodesResponse]:
    """Replace every recovery code. Requires a TOTP code; recovery codes are refused."""
    codes = await service.regenerate_recovery_codes(caller.identity, body.code, metadata)
    return ApiResponse(data=RecoveryCodesResponse(recovery_codes=codes))
