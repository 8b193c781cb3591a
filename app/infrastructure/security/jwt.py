"""JWT session token signing and verification (ITokenSigner)."""

from datetime import timedelta
from typing import Any, cast

from jose import JWTError, jwt

from app.application.dtos.auth import TokenClaims
from app.domain.exceptions import InvalidTokenException
from app.shared.utils.datetime import from_timestamp_utc, utc_now


class JwtTokenSigner:
    """HS256 (by default) signer for session tokens.

    Payload: sub, email, role, companyId (when scoped), iat, exp.
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        expire_minutes: int = 10080,
    ) -> None:
        if not secret_key:
            raise ValueError("secret_key is required")
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._expires = timedelta(minutes=expire_minutes)

    def encode(self, claims: TokenClaims) -> str:
        """Return a signed token; exp defaults to now + the configured lifetime."""
        now = utc_now()
        expire = claims.expires_at or now + self._expires
        payload: dict[str, Any] = {
            "sub": claims.sub,
            "email": claims.email,
            "role": claims.role,
            "iat": int(now.timestamp()),
            "exp": int(expire.timestamp()),
        }
        if claims.company_id is not None:
            payload["companyId"] = claims.company_id
        return cast(str, jwt.encode(payload, self._secret_key, algorithm=self._algorithm))

    def decode(self, token: str) -> TokenClaims:
        """Verify signature and expiry and return the claims.

        Raises:
            InvalidTokenException: Bad signature, expired, or missing sub/exp.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"require_exp": True, "require_sub": True},
            )
        except JWTError as e:
            raise InvalidTokenException() from e
        sub = payload.get("sub")
        if not sub:
            raise InvalidTokenException()
        return TokenClaims(
            sub=sub,
            email=payload.get("email", ""),
            role=payload.get("role", "member"),
            company_id=payload.get("companyId"),
            expires_at=from_timestamp_utc(payload["exp"]),
        )
