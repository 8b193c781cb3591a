"""TOTP (RFC 6238) via pyotp: 30-second steps, 6 digits, SHA-1."""

from datetime import datetime

import pyotp


class PyOtpTotpService:
    """ITotpService backed by pyotp."""

    def __init__(self, issuer: str = "Keystone", valid_window: int = 1) -> None:
        self.issuer = issuer
        self.valid_window = valid_window

    def generate_secret(self) -> str:
        return pyotp.random_base32()

    def provisioning_uri(self, secret: str, email: str) -> str:
        return pyotp.TOTP(secret).provisioning_uri(name=email, issuer_name=self.issuer)

    def verify(self, secret: str, code: str, at: datetime) -> bool:
        """Accept the code for the step containing at or one step either side."""
        return pyotp.TOTP(secret).verify(code, for_time=at, valid_window=self.valid_window)
