"""Unit tests for the error taxonomy."""

from __future__ import annotations

import pytest

from fedi.api.core.exceptions import (
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


class TestHierarchy:
    """Every library error is a FediError."""

    @pytest.mark.parametrize(
        "error",
        [
            CredentialError("x"),
            TransportError("x"),
            ApiError("x"),
            RateLimitError("x"),
            RegistrationError("x"),
            AuthorizationError("x"),
            PaginationDecodeError("<a>", "bad"),
            StreamFrameError("bad"),
            StreamError("x"),
        ],
    )
    def test_base_class(self, error):
        assert isinstance(error, FediError)

    def test_rate_limit_is_api_error(self):
        """RateLimitError carries status 429 and retry_after."""
        error = RateLimitError("slow down", endpoint="/api/v1/x", retry_after=12.5)
        assert isinstance(error, ApiError)
        assert error.status == 429
        assert error.retry_after == 12.5
        assert error.endpoint == "/api/v1/x"


class TestContext:
    """Errors expose the context a caller needs to react."""

    def test_transport_error_is_retryable(self):
        assert TransportError("reset", endpoint="https://a").retryable is True

    def test_flow_errors_default_terminal(self):
        error = AuthorizationError("invalid_grant", status=400, endpoint="https://a/oauth/token")
        assert error.retryable is False
        assert error.status == 400
        assert error.endpoint == "https://a/oauth/token"

    def test_flow_error_retryable_flag(self):
        assert RegistrationError("down", retryable=True).retryable is True

    def test_stream_error_fields(self):
        error = StreamError("gone", endpoint="/s", status=401, last_event_id="9", attempts=3)
        assert (error.endpoint, error.status, error.last_event_id, error.attempts) == (
            "/s",
            401,
            "9",
            3,
        )

    def test_pagination_decode_error_message(self):
        error = PaginationDecodeError("<x>; foo", "missing rel parameter")
        assert error.entry == "<x>; foo"
        assert "missing rel parameter" in str(error)

    def test_stream_frame_error_message(self):
        assert "event='update'" in str(StreamFrameError("bad json", "update"))
        assert str(StreamFrameError("no name")) == "no name"
