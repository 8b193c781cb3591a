"""Password endpoints: forgot (email a reset link), reset (redeem token), change."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from app.api.v1.dependencies import CurrentCaller, Metadata, get_password_service
from app.application.services import PasswordService
from app.core.limiter import limit_forgot_password
from app.schemas.auth import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    ResetPasswordRequest,
)
from app.schemas.common import MessageResponse

router = APIRouter()

Passwords = Annotated[PasswordService, Depends(get_password_service)]


@router.post("/forgot-password", response_model=MessageResponse)
@limit_forgot_password
async def forgot_password(
    request: Request,
    body: ForgotPasswordRequest,
    metadata: Metadata,
    service: Passwords,
) -> MessageResponse:
    """Always succeeds so the response does not reveal whether the email is registered."""
    await service.forgot_password(str(body.email), metadata)
    return MessageResponse(
        message="If an account exists for this email, a password reset link has been sent"
    )


@router.post("/reset-password", response_model=MessageResponse)
@limit_forgot_password
async def reset_password(
    request: Request,
    body: ResetPasswordRequest,
    metadata: Metadata,
    service: Passwords,
) -> MessageResponse:
    await service.reset_password(body.token, body.new_password, metadata)
    return MessageResponse(message="Password has been reset")


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    body: ChangePasswordRequest,
    caller: CurrentCaller,
    metadata: Metadata,
    service: Passwords,
) -> MessageResponse:
    """Re-verifies the current password with the identity provider first."""
    await service.change_password(
        caller.identity, body.current_password, body.new_password, metadata
    )
    return MessageResponse(message="Password changed")
