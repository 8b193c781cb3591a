"""Hash service for single-use secrets (reset tokens, invitation tokens, recovery codes).

Raw secrets are never stored. Opaque tokens are looked up by an unsalted
digest (they carry 256 bits of entropy); recovery codes are short, so each
is stored as a salted digest and compared in constant time.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
from abc import ABC, abstractmethod

from app.domain.value_objects.core import RecoveryCode

_SALT_BYTES = 16


class HashAlgorithm(ABC):
    """Abstract hash algorithm (OCP)."""

    @abstractmethod
    def hash(self, data: str) -> str:
        """Compute hash of input string."""
        ...


class SHA256Algorithm(HashAlgorithm):
    """SHA-256 implementation."""

    def hash(self, data: str) -> str:
        return hashlib.sha256(data.encode()).hexdigest()


class HashService:
    """Single source of truth for hashing stored secrets (IHashService)."""

    def __init__(self, algorithm: HashAlgorithm | None = None) -> None:
        self.algorithm = algorithm or SHA256Algorithm()

    def hash_token(self, raw_token: str) -> str:
        """Digest used as the lookup key for an opaque token."""
        return self.algorithm.hash(raw_token)

    def hash_recovery_code(self, code: str, salt: str | None = None) -> str:
        """Return 'salt$digest' for a recovery code in any accepted input form."""
        salt = salt or secrets.token_hex(_SALT_BYTES)
        digest = self.algorithm.hash(f"{salt}:{RecoveryCode.canonicalize(code)}")
        return f"{salt}${digest}"

    def verify_recovery_code(self, code: str, stored_hash: str) -> bool:
        """Constant-time comparison of a candidate code against a stored 'salt$digest'."""
        salt, sep, _ = stored_hash.partition("$")
        if not sep or not salt:
            return False
        candidate = self.hash_recovery_code(code, salt=salt)
        return hmac.compare_digest(candidate, stored_hash)

    @staticmethod
    def generate_recovery_codes(count: int) -> list[str]:
        """Generate count fresh recovery codes in display form (XXXX-XXXX-XXXX)."""
        return [RecoveryCode.from_hex(secrets.token_hex(6)).value for _ in range(count)]

    @staticmethod
    def generate_token() -> str:
        """Generate an opaque URL-safe token (256 bits)."""
        return secrets.token_urlsafe(32)
