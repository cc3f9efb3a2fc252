"""Unit tests for OAuth scope sets."""

from __future__ import annotations

import pytest

from fedi.api.models import Scopes


class TestScopesParsing:
    """Test parsing and serialisation."""

    def test_default_is_read(self):
        assert str(Scopes()) == "read"

    def test_parse_space_separated(self):
        scopes = Scopes.parse("write:statuses read  follow")
        assert scopes.values == frozenset({"read", "follow", "write:statuses"})

    def test_str_orders_top_level_first(self):
        scopes = Scopes.parse("write:media push read:accounts read")
        assert str(scopes) == "read push read:accounts write:media"

    def test_parse_iterable(self):
        assert Scopes.parse(["read", "write"]) == Scopes.parse("write read")

    def test_empty_rejected(self):
        with pytest.raises(ValueError):
            Scopes.parse("   ")

    def test_invalid_scope_rejected(self):
        with pytest.raises(ValueError):
            Scopes.parse("read WRITE")

    def test_union(self):
        assert str(Scopes.read_all() | Scopes.write_all()) == "read write"


class TestScopesCoverage:
    """Test scope implication rules."""

    def test_broad_scope_covers_granular(self):
        scopes = Scopes.parse("read")
        assert "read:statuses" in scopes
        assert "write:statuses" not in scopes

    def test_follow_covers_relationship_scopes(self):
        scopes = Scopes.parse("follow")
        assert "write:blocks" in scopes
        assert "read:statuses" not in scopes

    def test_admin_scope_hierarchy(self):
        scopes = Scopes.parse("admin:read")
        assert "admin:read:accounts" in scopes
        assert "admin:write:accounts" not in scopes

    def test_covers(self):
        granted = Scopes.parse("read write follow")
        assert granted.covers(Scopes.parse("read:accounts write:statuses"))
        assert not granted.covers(Scopes.parse("read push"))
