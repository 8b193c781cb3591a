"""Security: JWT signing, password hashing, and TOTP."""

from app.infrastructure.security.jwt import JwtTokenSigner
from app.infrastructure.security.password import (
    BcryptPasswordHasher,
    get_password_hash,
    verify_password,
)
from app.infrastructure.security.totp import PyOtpTotpService

__all__ = [
    "BcryptPasswordHasher",
    "JwtTokenSigner",
    "PyOtpTotpService",
    "get_password_hash",
    "verify_password",
]
