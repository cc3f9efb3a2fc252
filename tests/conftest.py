"""Shared fixtures: an in-memory Transport and a fake OAuth instance."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Union

import pytest

from fedi.api.models import AppCredential, Scopes, UserToken
from fedi.api.runtime.rest.transport import HTTPResponse

BASE_URL = "https://social.example"


def json_response(
    payload: Any,
    status: int = 200,
    *,
    url: str = "",
    headers: dict[str, str] | None = None,
) -> HTTPResponse:
    return HTTPResponse(
        status=status,
        url=url,
        headers={"Content-Type": "application/json", **(headers or {})},
        body=json.dumps(payload).encode(),
    )


@dataclass
class RecordedRequest:
    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    params: dict[str, Any] | None = None
    json: Any = None
    data: dict[str, Any] | None = None


Reply = Union[HTTPResponse, Exception, Callable[[RecordedRequest], HTTPResponse]]


class FakeTransport:
    """Scripted Transport.

    `add(method, url, *replies)` queues replies for a URL; the last reply
    repeats. `add_stream(*scripts)` queues one script per `open_stream`
    call: a script is a list of byte chunks and exceptions, or an exception
    raised on open. Once scripts run out, a stream stays open silently.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], list[Reply]] = {}
        self.requests: list[RecordedRequest] = []
        self.stream_scripts: list[list[bytes | Exception] | Exception] = []
        self.stream_opens: list[RecordedRequest] = []
        self.open_streams = 0
        self.closed = False

    def add(self, method: str, url: str, *replies: Reply) -> None:
        self.routes.setdefault((method.upper(), url), []).extend(replies)

    def add_stream(self, *scripts: list[bytes | Exception] | Exception) -> None:
        self.stream_scripts.extend(scripts)

    def _reply_for(self, request: RecordedRequest) -> Reply:
        for key in ((request.method, request.url), (request.method, request.url.split("?")[0])):
            queue = self.routes.get(key)
            if queue:
                return queue.pop(0) if len(queue) > 1 else queue[0]
        return json_response({"error": "Record not found"}, 404, url=request.url)

    async def send(
        self,
        method: str,
        url: str,
        *,
        headers=None,
        params=None,
        json=None,
        data=None,
    ) -> HTTPResponse:
        await asyncio.sleep(0)
        request = RecordedRequest(
            method.upper(),
            url,
            dict(headers or {}),
            dict(params) if params else None,
            json,
            dict(data) if data else None,
        )
        self.requests.append(request)
        reply = self._reply_for(request)
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            reply = reply(request)
        if not reply.url:
            reply = HTTPResponse(reply.status, url, reply.headers, reply.body)
        return reply

    async def open_stream(self, url: str, *, headers=None, params=None):
        self.stream_opens.append(
            RecordedRequest("GET", url, dict(headers or {}), dict(params) if params else None)
        )
        script = self.stream_scripts.pop(0) if self.stream_scripts else []
        if isinstance(script, Exception):
            raise script
        self.open_streams += 1
        try:
            for chunk in script:
                await asyncio.sleep(0)
                if isinstance(chunk, Exception):
                    raise chunk
                yield chunk
            if not self.stream_scripts:
                await asyncio.Event().wait()
        finally:
            self.open_streams -= 1

    async def close(self) -> None:
        self.closed = True


class FakeInstance:
    """OAuth endpoints of one instance, with single-use authorization codes."""

    def __init__(self, transport: FakeTransport, base_url: str = BASE_URL) -> None:
        self.transport = transport
        self.base_url = base_url
        self.codes: dict[str, str] = {}
        self.refresh_tokens: dict[str, str] = {}
        self.issued = 0
        self._code_counter = 0
        transport.add("POST", f"{base_url}/api/v1/apps", self._apps)
        transport.add("POST", f"{base_url}/oauth/token", self._token)

    def issue_code(self, scope: str = "read") -> str:
        self._code_counter += 1
        code = f"code-{self._code_counter}"
        self.codes[code] = scope
        return code

    def _apps(self, request: RecordedRequest) -> HTTPResponse:
        return json_response(
            {
                "id": "1",
                "name": request.json["client_name"],
                "client_id": "cid",
                "client_secret": "csecret",
                "redirect_uri": request.json["redirect_uris"],
            }
        )

    def _grant(self, scope: str) -> HTTPResponse:
        self.issued += 1
        refresh = f"refresh-{self.issued}"
        self.refresh_tokens[refresh] = scope
        return json_response(
            {
                "access_token": f"token-{self.issued}",
                "token_type": "Bearer",
                "scope": scope,
                "created_at": 1700000000,
                "refresh_token": refresh,
            }
        )

    def _token(self, request: RecordedRequest) -> HTTPResponse:
        form = request.data or {}
        invalid = json_response(
            {
                "error": "invalid_grant",
                "error_description": "The provided authorization grant is invalid",
            },
            400,
        )
        if form.get("grant_type") == "authorization_code":
            scope = self.codes.pop(form.get("code"), None)
            return invalid if scope is None else self._grant(scope)
        if form.get("grant_type") == "refresh_token":
            scope = self.refresh_tokens.pop(form.get("refresh_token"), None)
            return invalid if scope is None else self._grant(scope)
        return json_response({"error": "unsupported_grant_type"}, 400)


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def instance(transport: FakeTransport) -> FakeInstance:
    return FakeInstance(transport)


@pytest.fixture
def credential() -> AppCredential:
    return AppCredential(
        base_url=BASE_URL,
        client_id="cid",
        client_secret="csecret",
        granted_scopes=Scopes.parse("read write follow"),
    )


@pytest.fixture
def token() -> UserToken:
    return UserToken(access_token="token-0", scope="read write follow", refresh_token="refresh-0")
