"""AuthenticatedClient: the single object REST and streaming calls go through.

Architecture:
    The client pairs an AppCredential with the current UserToken and a
    Transport. Every request snapshots the token's Authorization header,
    so pagination walks and stream subscriptions running concurrently all
    read the same immutable token value.

Design Decisions:
    - Construction requires a UserToken: there is no unauthenticated state
    - Token replacement (reauthorize/refresh) is serialised by an
      asyncio.Lock; readers never lock, they read one immutable reference
    - Stream subscriptions resolve the auth header on every reconnect, so a
      refreshed token is picked up without re-subscribing
    - The transport is closed by the client only when the client created it

See Also:
    - fedi.api.runtime.rest.pagination: fetch_page / items_iter
    - fedi.api.runtime.stream.subscription: StreamSubscription
    - fedi.api.auth.registration: how a client is first obtained
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Mapping
from typing import Any
from urllib.parse import quote

from ..auth import oauth
from ..core.config import ClientConfig, StreamConfig
from ..core.enums import StreamTimeline
from ..core.exceptions import CredentialError
from ..models.credentials import AppCredential, UserToken
from ..models.data import Data
from ..models.page import Page, PageRequest
from ..runtime.rest import pagination
from ..runtime.rest.http_client import HTTPClient
from ..runtime.rest.pagination import ItemDecoder
from ..runtime.rest.transport import HTTPResponse, Transport
from ..runtime.stream.dispatch import EntityDecoder
from ..runtime.stream.subscription import StreamSubscription, http_frames
from ..runtime.stream.websocket import websocket_frames, websocket_url

logger = logging.getLogger(__name__)

STREAMING_PATH = "/api/v1/streaming"


class AuthenticatedClient:
    """Client for one user on one instance."""

    def __init__(
        self,
        credential: AppCredential,
        token: UserToken | None,
        *,
        transport: Transport | None = None,
        config: ClientConfig | None = None,
        stream_config: StreamConfig | None = None,
        close_transport: bool | None = None,
    ) -> None:
        if not isinstance(token, UserToken):
            raise CredentialError("AuthenticatedClient requires a UserToken")
        self.credential = credential
        self._token = token
        self._config = config or ClientConfig()
        self._stream_config = stream_config or StreamConfig()
        self._transport: Transport = transport or HTTPClient(
            credential.base_url, config=self._config, stream_config=self._stream_config
        )
        self._close_transport = transport is None if close_transport is None else close_transport
        self._token_lock = asyncio.Lock()

    @classmethod
    def from_data(
        cls,
        data: Data,
        *,
        transport: Transport | None = None,
        config: ClientConfig | None = None,
        stream_config: StreamConfig | None = None,
    ) -> AuthenticatedClient:
        """Build a client from persisted credentials, bypassing registration."""
        credential = AppCredential(
            base_url=data.base,
            client_id=data.client_id,
            client_secret=data.client_secret,
            redirect_uri=data.redirect,
        )
        return cls(
            credential,
            UserToken(access_token=data.token),
            transport=transport,
            config=config,
            stream_config=stream_config,
        )

    def to_data(self) -> Data:
        """Persistable snapshot of the credential and current token."""
        return Data(
            base=self.credential.base_url,
            client_id=self.credential.client_id,
            client_secret=self.credential.client_secret,
            redirect=self.credential.redirect_uri,
            token=self._token.access_token,
        )

    @property
    def base_url(self) -> str:
        return self.credential.base_url

    @property
    def token(self) -> UserToken:
        return self._token

    @property
    def transport(self) -> Transport:
        return self._transport

    def _auth_headers(self) -> dict[str, str]:
        return {"Authorization": self._token.authorization}

    def _url(self, path: str) -> str:
        if "://" in path:
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    # ----------------------
    # Requests
    # ----------------------
    async def request(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
    ) -> HTTPResponse:
        """Issue an authenticated request.

        Raises:
            ApiError: Non-2xx status (RateLimitError for an exhausted 429)
            TransportError: Connection failure or timeout
        """
        response = await self._transport.send(
            method,
            self._url(url),
            headers=self._auth_headers(),
            params=params,
            json=json,
        )
        response.raise_for_status()
        return response

    async def get_json(self, path: str, *, params: Mapping[str, Any] | None = None) -> Any:
        response = await self.request("GET", path, params=params)
        return response.json()

    async def verify_credentials(self) -> Any:
        """Return the account the current token belongs to."""
        return await self.get_json("/api/v1/accounts/verify_credentials")

    # ----------------------
    # Pagination
    # ----------------------
    async def fetch_page(
        self, request: PageRequest | str, decode: ItemDecoder | None = None
    ) -> Page[Any]:
        if isinstance(request, str):
            request = PageRequest(url=request)
        return await pagination.fetch_page(self, request, decode)

    async def next_page(self, page: Page[Any], decode: ItemDecoder | None = None) -> Page[Any] | None:
        return await pagination.next_page(self, page, decode)

    async def prev_page(self, page: Page[Any], decode: ItemDecoder | None = None) -> Page[Any] | None:
        return await pagination.prev_page(self, page, decode)

    def items_iter(
        self,
        request: PageRequest | str,
        decode: ItemDecoder | None = None,
        *,
        max_pages: int | None = None,
    ) -> AsyncIterator[Any]:
        """Lazily yield every item across pages; each call starts a fresh walk."""
        if isinstance(request, str):
            request = PageRequest(url=request)
        return pagination.items_iter(self, request, decode, max_pages=max_pages)

    async def _paged(
        self, path: str, params: Mapping[str, Any], decode: ItemDecoder | None
    ) -> Page[Any]:
        query = {key: value for key, value in params.items() if value is not None}
        return await self.fetch_page(PageRequest(url=path, params=query or None), decode)

    async def home_timeline(
        self, *, limit: int | None = None, decode: ItemDecoder | None = None
    ) -> Page[Any]:
        return await self._paged("/api/v1/timelines/home", {"limit": limit}, decode)

    async def public_timeline(
        self,
        *,
        local: bool = False,
        remote: bool = False,
        only_media: bool = False,
        limit: int | None = None,
        decode: ItemDecoder | None = None,
    ) -> Page[Any]:
        params = {
            "local": "true" if local else None,
            "remote": "true" if remote else None,
            "only_media": "true" if only_media else None,
            "limit": limit,
        }
        return await self._paged("/api/v1/timelines/public", params, decode)

    async def hashtag_timeline(
        self,
        hashtag: str,
        *,
        local: bool = False,
        limit: int | None = None,
        decode: ItemDecoder | None = None,
    ) -> Page[Any]:
        tag = quote(hashtag.lstrip("#"), safe="")
        params = {"local": "true" if local else None, "limit": limit}
        return await self._paged(f"/api/v1/timelines/tag/{tag}", params, decode)

    async def notifications(
        self, *, limit: int | None = None, decode: ItemDecoder | None = None
    ) -> Page[Any]:
        return await self._paged("/api/v1/notifications", {"limit": limit}, decode)

    async def favourites(
        self, *, limit: int | None = None, decode: ItemDecoder | None = None
    ) -> Page[Any]:
        return await self._paged("/api/v1/favourites", {"limit": limit}, decode)

    async def bookmarks(
        self, *, limit: int | None = None, decode: ItemDecoder | None = None
    ) -> Page[Any]:
        return await self._paged("/api/v1/bookmarks", {"limit": limit}, decode)

    async def blocks(
        self, *, limit: int | None = None, decode: ItemDecoder | None = None
    ) -> Page[Any]:
        return await self._paged("/api/v1/blocks", {"limit": limit}, decode)

    async def mutes(
        self, *, limit: int | None = None, decode: ItemDecoder | None = None
    ) -> Page[Any]:
        return await self._paged("/api/v1/mutes", {"limit": limit}, decode)

    async def followers(
        self, account_id: str, *, limit: int | None = None, decode: ItemDecoder | None = None
    ) -> Page[Any]:
        path = f"/api/v1/accounts/{quote(account_id, safe='')}/followers"
        return await self._paged(path, {"limit": limit}, decode)

    async def following(
        self, account_id: str, *, limit: int | None = None, decode: ItemDecoder | None = None
    ) -> Page[Any]:
        path = f"/api/v1/accounts/{quote(account_id, safe='')}/following"
        return await self._paged(path, {"limit": limit}, decode)

    # ----------------------
    # Streaming
    # ----------------------
    def stream(
        self,
        timeline: StreamTimeline | str = StreamTimeline.USER,
        *,
        tag: str | None = None,
        list_id: str | None = None,
        decoder: EntityDecoder | None = None,
        config: StreamConfig | None = None,
        websocket: bool = False,
    ) -> StreamSubscription:
        """Subscribe to a streaming timeline.

        The returned subscription is not connected until it is iterated or
        entered with `async with`.

        Raises:
            ValueError: A hashtag stream without `tag` or a list stream
                without `list_id`
        """
        timeline = StreamTimeline(timeline)
        conf = config or self._stream_config
        params: dict[str, str] = {}
        if timeline.required_param == "tag":
            if not tag:
                raise ValueError(f"Stream {timeline.value} requires a tag")
            params["tag"] = tag.lstrip("#")
        elif timeline.required_param == "list":
            if not list_id:
                raise ValueError(f"Stream {timeline.value} requires a list_id")
            params["list"] = list_id

        if websocket:
            url = websocket_url(self.base_url, {"stream": timeline.value, **params})
            source = websocket_frames(
                url, headers=self._auth_headers, open_timeout=conf.connect_timeout
            )
            endpoint = f"{STREAMING_PATH}?stream={timeline.value}"
        else:
            url = f"{self.base_url}{STREAMING_PATH}/{timeline.path}"
            source = http_frames(
                self._transport, url, headers=self._auth_headers, params=params or None
            )
            endpoint = f"{STREAMING_PATH}/{timeline.path}"

        logger.debug(f"Created stream subscription for {endpoint}")
        return StreamSubscription(source, endpoint=endpoint, decoder=decoder, config=conf)

    def stream_user(self, **kwargs: Any) -> StreamSubscription:
        return self.stream(StreamTimeline.USER, **kwargs)

    def stream_notifications(self, **kwargs: Any) -> StreamSubscription:
        return self.stream(StreamTimeline.USER_NOTIFICATION, **kwargs)

    def stream_public(
        self, *, local: bool = False, remote: bool = False, media: bool = False, **kwargs: Any
    ) -> StreamSubscription:
        if local:
            timeline = StreamTimeline.PUBLIC_LOCAL_MEDIA if media else StreamTimeline.PUBLIC_LOCAL
        elif remote:
            timeline = StreamTimeline.PUBLIC_REMOTE_MEDIA if media else StreamTimeline.PUBLIC_REMOTE
        else:
            timeline = StreamTimeline.PUBLIC_MEDIA if media else StreamTimeline.PUBLIC
        return self.stream(timeline, **kwargs)

    def stream_hashtag(self, tag: str, *, local: bool = False, **kwargs: Any) -> StreamSubscription:
        timeline = StreamTimeline.HASHTAG_LOCAL if local else StreamTimeline.HASHTAG
        return self.stream(timeline, tag=tag, **kwargs)

    def stream_list(self, list_id: str, **kwargs: Any) -> StreamSubscription:
        return self.stream(StreamTimeline.LIST, list_id=list_id, **kwargs)

    def stream_direct(self, **kwargs: Any) -> StreamSubscription:
        return self.stream(StreamTimeline.DIRECT, **kwargs)

    # ----------------------
    # Token lifecycle
    # ----------------------
    async def _replace_token(self, token: UserToken) -> None:
        self._token = token
        logger.info(f"Replaced access token for {self.base_url} (scope {token.scope!r})")

    async def reauthorize(self, code: str) -> UserToken:
        """Exchange a fresh consent code and replace the token in place.

        Raises:
            AuthorizationError: See `fedi.api.auth.oauth.exchange_code`
        """
        async with self._token_lock:
            token = await oauth.exchange_code(self._transport, self.credential, code)
            await self._replace_token(token)
            return token

    async def refresh(self) -> UserToken:
        """Refresh the token with its refresh_token grant.

        Concurrent callers share one refresh: a caller that waited on the
        lock while another refreshed gets the already-new token.

        Raises:
            AuthorizationError: No refresh_token, or the grant was rejected
        """
        stale = self._token
        async with self._token_lock:
            if self._token is not stale:
                return self._token
            token = await oauth.refresh_token(self._transport, self.credential, stale)
            await self._replace_token(token)
            return token

    async def revoke(self) -> None:
        """Revoke the current token; later requests will be rejected."""
        async with self._token_lock:
            await oauth.revoke_token(self._transport, self.credential, self._token)

    # ----------------------
    # Lifecycle
    # ----------------------
    async def close(self) -> None:
        if self._close_transport:
            await self._transport.close()

    async def __aenter__(self) -> AuthenticatedClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"AuthenticatedClient(base_url={self.base_url!r}, scope={self._token.scope!r})"
