"""OAuth wire calls: app registration, consent URL, token grant and revocation.

These are the primitive protocol steps. They hold no state; the
registration state machine and AuthenticatedClient sequence them.

Error policy:
    - A TransportError becomes RegistrationError/AuthorizationError with
      `retryable=True` and the transport error chained as the cause
    - Any server rejection is terminal (`retryable=False`), except 429
    - Secrets and codes never appear in log messages
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote, urlencode

from pydantic import ValidationError

from ..core.exceptions import AuthorizationError, RegistrationError, TransportError
from ..models.credentials import AppCredential, ApplicationForm, UserToken
from ..models.scopes import Scopes
from ..runtime.rest.transport import HTTPResponse, Transport

logger = logging.getLogger(__name__)

APPS_PATH = "/api/v1/apps"
AUTHORIZE_PATH = "/oauth/authorize"
TOKEN_PATH = "/oauth/token"
REVOKE_PATH = "/oauth/revoke"


def _describe(response: HTTPResponse) -> str:
    error, description = response.error_fields()
    if description:
        return f"{error}: {description}"
    return error or f"HTTP {response.status}"


async def register_app(
    transport: Transport, base_url: str, form: ApplicationForm
) -> AppCredential:
    """POST the application form and return the issued credential.

    Raises:
        RegistrationError: Transport failure (retryable), non-2xx status,
            or a response without client_id/client_secret
    """
    base_url = base_url.rstrip("/")
    url = f"{base_url}{APPS_PATH}"
    logger.debug(f"Registering app {form.client_name!r} at {url}")
    try:
        response = await transport.send("POST", url, json=form.to_form())
    except TransportError as e:
        raise RegistrationError(
            f"Could not reach {url}: {e}", endpoint=url, retryable=True
        ) from e

    if not response.ok:
        raise RegistrationError(
            f"Instance rejected app registration: {_describe(response)}",
            status=response.status,
            endpoint=url,
            retryable=response.status == 429,
        )

    try:
        payload = response.json()
    except ValueError as e:
        raise RegistrationError(
            "App registration response is not valid JSON", status=response.status, endpoint=url
        ) from e
    if not isinstance(payload, dict) or not payload.get("client_id") or not payload.get(
        "client_secret"
    ):
        raise RegistrationError(
            "App registration response is missing client_id or client_secret",
            status=response.status,
            endpoint=url,
        )

    redirect_uri = payload.get("redirect_uri") or form.redirect_uris.split()[0]
    credential = AppCredential(
        base_url=base_url,
        client_id=payload["client_id"],
        client_secret=payload["client_secret"],
        redirect_uri=redirect_uri,
        granted_scopes=form.scopes,
    )
    logger.info(f"Registered app {form.client_name!r} on {base_url}")
    return credential


def authorization_url(
    credential: AppCredential,
    *,
    scopes: Scopes | None = None,
    force_login: bool = False,
    state: str | None = None,
) -> str:
    """Build the user-facing consent URL. Pure: no I/O."""
    query: dict[str, str] = {
        "client_id": credential.client_id,
        "redirect_uri": credential.redirect_uri,
        "scope": str(scopes or credential.granted_scopes),
        "response_type": "code",
    }
    if force_login:
        query["force_login"] = "true"
    if state:
        query["state"] = state
    return f"{credential.base_url}{AUTHORIZE_PATH}?{urlencode(query, quote_via=quote)}"


async def request_token(
    transport: Transport, credential: AppCredential, grant: dict[str, Any]
) -> UserToken:
    """POST a grant to the token endpoint and validate the issued token.

    Raises:
        AuthorizationError: Transport failure (retryable), rejected grant
            (invalid/expired/used code, denied consent), malformed token
            response, or a token with scopes the app was not registered for
    """
    url = f"{credential.base_url}{TOKEN_PATH}"
    form = {
        "client_id": credential.client_id,
        "client_secret": credential.client_secret,
        "redirect_uri": credential.redirect_uri,
        **grant,
    }
    grant_type = grant.get("grant_type")
    try:
        response = await transport.send("POST", url, data=form)
    except TransportError as e:
        raise AuthorizationError(
            f"Could not reach {url} for {grant_type} grant: {e}", endpoint=url, retryable=True
        ) from e

    if not response.ok:
        raise AuthorizationError(
            f"Token endpoint rejected {grant_type} grant: {_describe(response)}",
            status=response.status,
            endpoint=url,
            retryable=response.status == 429,
        )

    try:
        token = UserToken.model_validate(response.json())
    except (ValueError, ValidationError) as e:
        raise AuthorizationError(
            f"Malformed token response: {e}", status=response.status, endpoint=url
        ) from e

    if not credential.granted_scopes.covers(token.scopes):
        raise AuthorizationError(
            f"Token scopes {token.scope!r} exceed the app's registered scopes "
            f"{str(credential.granted_scopes)!r}",
            status=response.status,
            endpoint=url,
        )
    logger.debug(f"Obtained {grant_type} token with scope {token.scope!r}")
    return token


async def exchange_code(
    transport: Transport,
    credential: AppCredential,
    code: str,
    *,
    scopes: Scopes | None = None,
) -> UserToken:
    """Trade a one-time authorization code for a user token.

    Codes are single-use: only retry when the raised error is `retryable`.
    """
    if not code or not code.strip():
        raise AuthorizationError("Authorization code must be a non-empty string")
    return await request_token(
        transport,
        credential,
        {
            "grant_type": "authorization_code",
            "code": code.strip(),
            "scope": str(scopes or credential.granted_scopes),
        },
    )


async def refresh_token(
    transport: Transport, credential: AppCredential, token: UserToken
) -> UserToken:
    """Use a token's refresh_token to obtain a new token."""
    if not token.refresh_token:
        raise AuthorizationError("Token has no refresh_token; re-authorization is required")
    return await request_token(
        transport,
        credential,
        {"grant_type": "refresh_token", "refresh_token": token.refresh_token},
    )


async def revoke_token(transport: Transport, credential: AppCredential, token: UserToken) -> None:
    """Revoke an access token so it can no longer be used.

    Raises:
        ApiError: The server refused the revocation
        TransportError: Connection failure
    """
    url = f"{credential.base_url}{REVOKE_PATH}"
    response = await transport.send(
        "POST",
        url,
        data={
            "client_id": credential.client_id,
            "client_secret": credential.client_secret,
            "token": token.access_token,
        },
    )
    response.raise_for_status()
    logger.info(f"Revoked access token on {credential.base_url}")
