"""OAuth protocol steps.

The registration state machine lives in `fedi.api.auth.registration`.
"""

from .oauth import (
    authorization_url,
    exchange_code,
    refresh_token,
    register_app,
    request_token,
    revoke_token,
)

__all__ = [
    "authorization_url",
    "exchange_code",
    "refresh_token",
    "register_app",
    "request_token",
    "revoke_token",
]
