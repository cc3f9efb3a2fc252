"""fedi-api - async client for federated social-network instances.

OAuth app registration and authorization, cursor-based pagination and
reconnecting server-push streams over an aiohttp transport.
"""

from .auth.registration import (
    AppRegistered,
    AuthorizationPending,
    Authorized,
    Unregistered,
    authorization_url,
    exchange_code,
    register,
)
from .clients import AuthenticatedClient
from .core import (
    ApiError,
    AuthorizationError,
    ClientConfig,
    CredentialError,
    FediError,
    LinkRelation,
    PaginationDecodeError,
    RateLimitError,
    RegistrationError,
    StreamConfig,
    StreamError,
    StreamEventType,
    StreamFrameError,
    StreamTimeline,
    TransportError,
)
from .models import (
    AppCredential,
    ApplicationForm,
    CursorLink,
    Data,
    Delete,
    FiltersChanged,
    Notification,
    Page,
    PageRequest,
    Scopes,
    StreamEvent,
    StreamFrame,
    Unknown,
    Update,
    UserToken,
)
from .runtime import HTTPClient, HTTPResponse, StreamSubscription, Transport
from .runtime.stream import EntityDecoder, JsonEntityDecoder, ModelEntityDecoder

__version__ = "0.1.0"

__all__ = [
    # Registration
    "AppRegistered",
    "AuthorizationPending",
    "Authorized",
    "Unregistered",
    "authorization_url",
    "exchange_code",
    "register",
    # Client
    "AuthenticatedClient",
    # Config
    "ClientConfig",
    "StreamConfig",
    # Enums
    "LinkRelation",
    "StreamEventType",
    "StreamTimeline",
    # Errors
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
    # Models
    "AppCredential",
    "ApplicationForm",
    "CursorLink",
    "Data",
    "Delete",
    "FiltersChanged",
    "Notification",
    "Page",
    "PageRequest",
    "Scopes",
    "StreamEvent",
    "StreamFrame",
    "Unknown",
    "Update",
    "UserToken",
    # Runtime
    "EntityDecoder",
    "HTTPClient",
    "HTTPResponse",
    "JsonEntityDecoder",
    "ModelEntityDecoder",
    "StreamSubscription",
    "Transport",
]
