"""Primary-key generation for persisted rows."""

from cuid2 import cuid_wrapper

_next_cuid = cuid_wrapper()


def generate_cuid() -> str:
    """New CUID2 string; used for identities, companies, memberships and events."""
    return _next_cuid()
