"""Core components."""

from .config import ClientConfig, StreamConfig
from .enums import LinkRelation, StreamEventType, StreamTimeline
from .exceptions import (
    ApiError,
    AuthorizationError,
    CredentialError,
    FediError,
    PaginationDecodeError,
    RateLimitError,
    RegistrationError,
    StreamError,
    StreamFrameError,
    TransportError,
)

__all__ = [
    "ClientConfig",
    "StreamConfig",
    "LinkRelation",
    "StreamEventType",
    "StreamTimeline",
    "ApiError",
    "AuthorizationError",
    "CredentialError",
    "FediError",
    "PaginationDecodeError",
    "RateLimitError",
    "RegistrationError",
    "StreamError",
    "StreamFrameError",
    "TransportError",
]
