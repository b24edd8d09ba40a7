"""slowapi limiter shared by the routers and registered on the app in main.py."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from winx.config import settings

# Clients are keyed by IP address
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.DEFAULT_RATE_LIMIT],
)


def login_rate_limit() -> str:
    """Per-client limit on login attempts, read at request time."""
    return settings.LOGIN_RATE_LIMIT
