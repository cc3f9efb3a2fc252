"""App registration and user authorization as an explicit state machine.

Architecture:
    Each state is a distinct frozen value that only offers the transitions
    valid from it:

        Unregistered --register()--> AppRegistered
        AppRegistered --authorize()--> AuthorizationPending
        AuthorizationPending --complete(code)--> Authorized

    `Authorized` holds the AuthenticatedClient; no earlier state can hand one
    out, so a client never exists before its token does. A failed transition
    raises and leaves the caller holding the state it started from.

Design Decisions:
    - States are immutable: retrying after a retryable error reuses the same
      state value
    - Module-level register / authorization_url / exchange_code cover the
      common path without spelling out the states
    - An authorization code is single-use. `AuthorizationError.retryable`
      tells a caller whether the code may still be valid (transport failure)
      or was consumed/rejected (terminal)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..clients.authenticated import AuthenticatedClient
from ..core.config import ClientConfig, StreamConfig
from ..core.exceptions import AuthorizationError
from ..models.credentials import OOB_REDIRECT_URI, AppCredential, ApplicationForm
from ..models.scopes import Scopes
from ..runtime.rest.http_client import HTTPClient
from ..runtime.rest.transport import Transport
from . import oauth

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Unregistered:
    base_url: str

    async def register(
        self,
        client_name: str,
        *,
        scopes: Scopes | str = "read",
        redirect_uri: str = OOB_REDIRECT_URI,
        website: str | None = None,
        transport: Transport | None = None,
    ) -> AppRegistered:
        credential = await register(
            self.base_url,
            client_name,
            scopes=scopes,
            redirect_uri=redirect_uri,
            website=website,
            transport=transport,
        )
        return AppRegistered(credential)


@dataclass(frozen=True)
class AppRegistered:
    credential: AppCredential

    def authorize(
        self,
        *,
        scopes: Scopes | None = None,
        force_login: bool = False,
        state: str | None = None,
    ) -> AuthorizationPending:
        requested = scopes or self.credential.granted_scopes
        url = oauth.authorization_url(
            self.credential, scopes=requested, force_login=force_login, state=state
        )
        return AuthorizationPending(self.credential, url, requested)


@dataclass(frozen=True)
class AuthorizationPending:
    """Waiting for the user to visit `url` and return with a code."""

    credential: AppCredential
    url: str
    scopes: Scopes = field(default_factory=Scopes)

    async def complete(
        self,
        code: str,
        *,
        transport: Transport | None = None,
        config: ClientConfig | None = None,
        stream_config: StreamConfig | None = None,
    ) -> Authorized:
        client = await exchange_code(
            self.credential,
            code,
            scopes=self.scopes,
            transport=transport,
            config=config,
            stream_config=stream_config,
        )
        return Authorized(client)


@dataclass(frozen=True)
class Authorized:
    client: AuthenticatedClient


async def register(
    base_url: str,
    client_name: str,
    *,
    scopes: Scopes | str = "read",
    redirect_uri: str = OOB_REDIRECT_URI,
    website: str | None = None,
    transport: Transport | None = None,
) -> AppCredential:
    """Register an application on an instance.

    Raises:
        RegistrationError: Invalid metadata, network failure, instance
            rejection or an incomplete response
    """
    form = ApplicationForm(
        client_name=client_name, redirect_uris=redirect_uri, scopes=scopes, website=website
    )
    if transport is not None:
        return await oauth.register_app(transport, base_url, form)
    async with HTTPClient() as http:
        return await oauth.register_app(http, base_url, form)


def authorization_url(
    credential: AppCredential, *, force_login: bool = False, state: str | None = None
) -> str:
    """Consent URL for the app's registered scopes."""
    return oauth.authorization_url(credential, force_login=force_login, state=state)


async def exchange_code(
    credential: AppCredential,
    code: str,
    *,
    scopes: Scopes | None = None,
    transport: Transport | None = None,
    config: ClientConfig | None = None,
    stream_config: StreamConfig | None = None,
) -> AuthenticatedClient:
    """Trade a consent code for a token and return the ready client.

    When no transport is given, one is created and owned by the returned
    client; it is closed again if the exchange fails.

    Raises:
        AuthorizationError: Invalid, expired or already-used code, scope
            mismatch or transport failure (`retryable=True` only then)
    """
    owned = transport is None
    client_transport = transport or HTTPClient(
        credential.base_url, config=config, stream_config=stream_config
    )
    try:
        token = await oauth.exchange_code(client_transport, credential, code, scopes=scopes)
    except AuthorizationError:
        if owned:
            await client_transport.close()
        raise
    logger.info(f"Authorized user on {credential.base_url} with scope {token.scope!r}")
    return AuthenticatedClient(
        credential,
        token,
        transport=client_transport,
        config=config,
        stream_config=stream_config,
        close_transport=owned,
    )
