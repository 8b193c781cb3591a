"""Pydantic request/response schemas for the API."""

from app.schemas.auth import (
    ChangePasswordRequest,
    CompanyResponse,
    ForgotPasswordRequest,
    LoginRequest,
    MeResponse,
    RegisterRequest,
    ResendVerificationRequest,
    ResetPasswordRequest,
    SecurityEventResponse,
    SessionResponse,
    SwitchCompanyRequest,
    SwitchCompanyResponse,
    TwoFactorChallengeResponse,
    UpdateProfileRequest,
    UserResponse,
)
from app.schemas.common import ApiResponse, CamelModel, MessageResponse
from app.schemas.health import HealthResponse
from app.schemas.two_factor import (
    RecoveryCodesResponse,
    TwoFactorCodeRequest,
    TwoFactorEnableResponse,
    TwoFactorSetupResponse,
    TwoFactorStatusResponse,
    TwoFactorVerifyRequest,
)

__all__ = [
    "ApiResponse",
    "CamelModel",
    "ChangePasswordRequest",
    "CompanyResponse",
    "ForgotPasswordRequest",
    "HealthResponse",
    "LoginRequest",
    "MeResponse",
    "MessageResponse",
    "RecoveryCodesResponse",
    "RegisterRequest",
    "ResendVerificationRequest",
    "ResetPasswordRequest",
    "SecurityEventResponse",
    "SessionResponse",
    "SwitchCompanyRequest",
    "SwitchCompanyResponse",
    "TwoFactorChallengeResponse",
    "TwoFactorCodeRequest",
    "TwoFactorEnableResponse",
    "TwoFactorSetupResponse",
    "TwoFactorStatusResponse",
    "TwoFactorVerifyRequest",
    "UpdateProfileRequest",
    "UserResponse",
]
