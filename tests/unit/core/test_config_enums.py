"""Unit tests for configuration defaults and enums."""

from __future__ import annotations

import pytest

from fedi.api.core import LinkRelation, StreamConfig, StreamEventType, StreamTimeline
from fedi.api.core.config import ClientConfig


class TestStreamConfig:
    """Test StreamConfig backoff computation."""

    def test_defaults(self):
        conf = StreamConfig()
        assert conf.base_reconnect_delay == 1.0
        assert conf.max_reconnect_delay == 30.0
        assert conf.max_reconnect_attempts == 5

    def test_next_delay_grows(self):
        conf = StreamConfig(jitter=0.0)
        assert conf.next_delay(1.0) == 2.0
        assert conf.next_delay(2.0) == 4.0

    def test_next_delay_capped_with_jitter(self):
        """Jitter can add up to `jitter` on top of the cap."""
        conf = StreamConfig(max_reconnect_delay=10.0, jitter=0.2)
        for _ in range(50):
            delay = conf.next_delay(100.0)
            assert 10.0 <= delay <= 12.0

    def test_client_config_frozen(self):
        conf = ClientConfig()
        with pytest.raises(AttributeError):
            conf.request_timeout = 1.0  # type: ignore[misc]


class TestStreamTimeline:
    """Test StreamTimeline paths and required parameters."""

    def test_path_replaces_separators(self):
        assert StreamTimeline.PUBLIC_LOCAL_MEDIA.path == "public/local/media"
        assert StreamTimeline.USER.path == "user"

    def test_required_param(self):
        assert StreamTimeline.HASHTAG.required_param == "tag"
        assert StreamTimeline.HASHTAG_LOCAL.required_param == "tag"
        assert StreamTimeline.LIST.required_param == "list"
        assert StreamTimeline.PUBLIC.required_param is None

    def test_from_string(self):
        assert StreamTimeline("user:notification") is StreamTimeline.USER_NOTIFICATION


class TestEventAndLinkEnums:
    """Test wire name mapping."""

    def test_known_event(self):
        assert StreamEventType.from_wire("update") is StreamEventType.UPDATE

    def test_unknown_event(self):
        assert StreamEventType.from_wire("status.update") is StreamEventType.UNKNOWN

    @pytest.mark.parametrize(
        ("token", "expected"),
        [
            ("next", LinkRelation.NEXT),
            ("NEXT", LinkRelation.NEXT),
            ("prev", LinkRelation.PREVIOUS),
            ("Previous", LinkRelation.PREVIOUS),
            ("last", None),
        ],
    )
    def test_link_relation_tokens(self, token, expected):
        assert LinkRelation.from_token(token) is expected
