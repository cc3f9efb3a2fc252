"""Unit tests for HTTPResponse."""

from __future__ import annotations

import pytest

from fedi.api.core.exceptions import ApiError, RateLimitError
from fedi.api.runtime.rest import HTTPResponse


class TestHTTPResponse:
    """Test status handling and body helpers."""

    def test_header_lookup_case_insensitive(self):
        response = HTTPResponse(200, "https://a", {"Link": "<x>; rel=next"})
        assert response.header("link") == "<x>; rel=next"
        assert response.header("Retry-After") is None

    def test_json_empty_body(self):
        assert HTTPResponse(200, "https://a").json() is None

    def test_raise_for_status_ok(self):
        HTTPResponse(204, "https://a").raise_for_status()

    def test_raise_for_status_api_error(self):
        response = HTTPResponse(
            422, "https://a/x", body=b'{"error": "Validation failed", "error_description": "bad"}'
        )
        with pytest.raises(ApiError) as exc_info:
            response.raise_for_status()
        assert exc_info.value.status == 422
        assert exc_info.value.error == "Validation failed"
        assert exc_info.value.description == "bad"
        assert exc_info.value.endpoint == "https://a/x"

    def test_raise_for_status_non_json_body(self):
        with pytest.raises(ApiError) as exc_info:
            HTTPResponse(502, "https://a", body=b"<html>bad gateway</html>").raise_for_status()
        assert exc_info.value.error is None

    def test_raise_for_status_rate_limit(self):
        response = HTTPResponse(429, "https://a", {"Retry-After": "7"})
        with pytest.raises(RateLimitError) as exc_info:
            response.raise_for_status()
        assert exc_info.value.retry_after == 7.0

    def test_rate_limit_default_retry_after(self):
        with pytest.raises(RateLimitError) as exc_info:
            HTTPResponse(429, "https://a", {"Retry-After": "soon"}).raise_for_status()
        assert exc_info.value.retry_after == 60.0
