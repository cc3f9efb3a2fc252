"""Unit tests for the OAuth wire calls."""

from __future__ import annotations

from urllib.parse import parse_qs, urlsplit

import pytest

from fedi.api.auth import oauth
from fedi.api.core.exceptions import (
    ApiError,
    AuthorizationError,
    RegistrationError,
    TransportError,
)
from fedi.api.models import OOB_REDIRECT_URI, ApplicationForm, Scopes, UserToken

from conftest import BASE_URL, json_response

APPS = f"{BASE_URL}/api/v1/apps"
TOKEN = f"{BASE_URL}/oauth/token"


class TestRegisterApp:
    """Test POST /api/v1/apps."""

    @pytest.mark.asyncio
    async def test_success(self, transport, instance):
        form = ApplicationForm(client_name="fedi", scopes="read write", website="https://f.example")

        credential = await oauth.register_app(transport, f"{BASE_URL}/", form)

        assert credential.base_url == BASE_URL
        assert credential.client_id == "cid"
        assert credential.client_secret == "csecret"
        assert credential.redirect_uri == OOB_REDIRECT_URI
        assert credential.granted_scopes == Scopes.parse("read write")
        assert transport.requests[0].json == {
            "client_name": "fedi",
            "redirect_uris": OOB_REDIRECT_URI,
            "scopes": "read write",
            "website": "https://f.example",
        }

    @pytest.mark.asyncio
    async def test_rejected(self, transport):
        transport.add("POST", APPS, json_response({"error": "Validation failed"}, 422))

        with pytest.raises(RegistrationError) as exc_info:
            await oauth.register_app(transport, BASE_URL, ApplicationForm(client_name="fedi"))

        assert exc_info.value.status == 422
        assert exc_info.value.endpoint == APPS
        assert exc_info.value.retryable is False
        assert "Validation failed" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_missing_client_secret(self, transport):
        transport.add("POST", APPS, json_response({"id": "1", "client_id": "cid"}))

        with pytest.raises(RegistrationError, match="client_secret"):
            await oauth.register_app(transport, BASE_URL, ApplicationForm(client_name="fedi"))

    @pytest.mark.asyncio
    async def test_non_json_body(self, transport):
        from fedi.api.runtime.rest import HTTPResponse

        transport.add("POST", APPS, HTTPResponse(200, APPS, body=b"<html></html>"))

        with pytest.raises(RegistrationError):
            await oauth.register_app(transport, BASE_URL, ApplicationForm(client_name="fedi"))

    @pytest.mark.asyncio
    async def test_transport_failure_is_retryable(self, transport):
        failure = TransportError("connection refused", endpoint=APPS)
        transport.add("POST", APPS, failure)

        with pytest.raises(RegistrationError) as exc_info:
            await oauth.register_app(transport, BASE_URL, ApplicationForm(client_name="fedi"))

        assert exc_info.value.retryable is True
        assert exc_info.value.__cause__ is failure


class TestAuthorizationUrl:
    """Test the consent URL builder."""

    def test_query(self, credential):
        url = oauth.authorization_url(credential)
        parts = urlsplit(url)
        query = parse_qs(parts.query)

        assert f"{parts.scheme}://{parts.netloc}{parts.path}" == f"{BASE_URL}/oauth/authorize"
        assert query == {
            "client_id": ["cid"],
            "redirect_uri": [OOB_REDIRECT_URI],
            "scope": ["read write follow"],
            "response_type": ["code"],
        }

    def test_spaces_percent_encoded(self, credential):
        assert "scope=read%20write%20follow" in oauth.authorization_url(credential)

    def test_deterministic(self, credential):
        assert oauth.authorization_url(credential) == oauth.authorization_url(credential)

    def test_force_login_and_state(self, credential):
        url = oauth.authorization_url(
            credential, scopes=Scopes.parse("read"), force_login=True, state="xyz"
        )
        query = parse_qs(urlsplit(url).query)
        assert query["force_login"] == ["true"]
        assert query["state"] == ["xyz"]
        assert query["scope"] == ["read"]


class TestExchangeCode:
    """Test the authorization-code grant."""

    @pytest.mark.asyncio
    async def test_success(self, transport, instance, credential):
        code = instance.issue_code("read write")

        token = await oauth.exchange_code(transport, credential, code)

        assert token.access_token == "token-1"
        assert token.scopes == Scopes.parse("read write")
        form = transport.requests[0].data
        assert form["grant_type"] == "authorization_code"
        assert form["code"] == code
        assert form["client_secret"] == "csecret"
        assert form["redirect_uri"] == OOB_REDIRECT_URI

    @pytest.mark.asyncio
    async def test_code_is_single_use(self, transport, instance, credential):
        """The second exchange of the same code is rejected."""
        code = instance.issue_code()

        await oauth.exchange_code(transport, credential, code)
        with pytest.raises(AuthorizationError) as exc_info:
            await oauth.exchange_code(transport, credential, code)

        assert exc_info.value.status == 400
        assert exc_info.value.retryable is False
        assert "invalid_grant" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_scope_mismatch(self, transport, instance, credential):
        code = instance.issue_code("read push")

        with pytest.raises(AuthorizationError, match="exceed"):
            await oauth.exchange_code(transport, credential, code)

    @pytest.mark.asyncio
    async def test_transport_failure_is_retryable(self, transport, credential):
        transport.add("POST", TOKEN, TransportError("timeout", endpoint=TOKEN))

        with pytest.raises(AuthorizationError) as exc_info:
            await oauth.exchange_code(transport, credential, "code-1")

        assert exc_info.value.retryable is True
        assert isinstance(exc_info.value.__cause__, TransportError)

    @pytest.mark.asyncio
    async def test_malformed_token_response(self, transport, credential):
        transport.add("POST", TOKEN, json_response({"token_type": "Bearer"}))

        with pytest.raises(AuthorizationError, match="Malformed"):
            await oauth.exchange_code(transport, credential, "code-1")

    @pytest.mark.asyncio
    async def test_blank_code_rejected_without_request(self, transport, credential):
        with pytest.raises(AuthorizationError):
            await oauth.exchange_code(transport, credential, "  ")
        assert transport.requests == []


class TestRefreshAndRevoke:
    """Test refresh_token grant and revocation."""

    @pytest.mark.asyncio
    async def test_refresh(self, transport, instance, credential):
        instance.refresh_tokens["refresh-0"] = "read"
        token = UserToken(access_token="token-0", refresh_token="refresh-0")

        refreshed = await oauth.refresh_token(transport, credential, token)

        assert refreshed.access_token == "token-1"
        assert transport.requests[0].data["grant_type"] == "refresh_token"

    @pytest.mark.asyncio
    async def test_refresh_without_refresh_token(self, transport, credential):
        with pytest.raises(AuthorizationError):
            await oauth.refresh_token(transport, credential, UserToken(access_token="t"))

    @pytest.mark.asyncio
    async def test_revoke(self, transport, credential, token):
        transport.add("POST", f"{BASE_URL}/oauth/revoke", json_response({}))

        await oauth.revoke_token(transport, credential, token)
        assert transport.requests[0].data["token"] == "token-0"

    @pytest.mark.asyncio
    async def test_revoke_rejected(self, transport, credential, token):
        transport.add(
            "POST", f"{BASE_URL}/oauth/revoke", json_response({"error": "unauthorized_client"}, 403)
        )

        with pytest.raises(ApiError):
            await oauth.revoke_token(transport, credential, token)
