"""Two-factor authentication API schemas."""

from pydantic import EmailStr, Field

from app.schemas.common import CamelModel


class TwoFactorVerifyRequest(CamelModel):
    """Second login step: a 6-digit TOTP code or a recovery code."""

    email: EmailStr
    code: str = Field(..., min_length=6, max_length=64)


class TwoFactorCodeRequest(CamelModel):
    """Code confirming an authenticated 2FA change (enable, disable, regenerate)."""

    code: str = Field(..., min_length=6, max_length=64)


class TwoFactorSetupResponse(CamelModel):
    secret: str
    otpauth_url: str


class TwoFactorEnableResponse(CamelModel):
    """Recovery codes are shown exactly once."""

    enabled: bool = True
    recovery_codes: list[str]


class TwoFactorStatusResponse(CamelModel):
    enabled: bool


class RecoveryCodesResponse(CamelModel):
    recovery_codes: list[str]
