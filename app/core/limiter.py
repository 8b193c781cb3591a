"""Rate limiter instance for SlowAPI.

Shared so both main (app.state.limiter) and route modules can use the same
instance without circular imports. Limits are per client address.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)

# Single source of truth for rate limit strings and decorators.
REGISTER_LIMIT = "3/15minutes"
LOGIN_LIMIT = "10/minute"
FORGOT_PASSWORD_LIMIT = "5/minute"

limit_register = limiter.limit(REGISTER_LIMIT)
limit_login = limiter.limit(LOGIN_LIMIT)
limit_forgot_password = limiter.limit(FORGOT_PASSWORD_LIMIT)


def configure_limiter(enabled: bool) -> Limiter:
    """Toggle enforcement (tests and local runs disable it)."""
    limiter.enabled = enabled
    return limiter
