"""OAuth scope sets.

Scopes travel as a single space-separated string in the app-registration
form, the consent URL and the token response. A broad scope (`read`,
`write`) implies every granular scope below it (`read:statuses`, ...), and
`follow` is a legacy alias for the block/follow/mute pairs.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field

_SCOPE_RE = re.compile(r"^[a-z]+(:[a-z_]+)*$")

_TOP_LEVEL_ORDER = ("read", "write", "follow", "push", "admin:read", "admin:write")

_FOLLOW_IMPLIES = frozenset(
    {
        "read:blocks",
        "write:blocks",
        "read:follows",
        "write:follows",
        "read:mutes",
        "write:mutes",
    }
)


@dataclass(frozen=True)
class Scopes:
    """Immutable set of OAuth scopes."""

    values: frozenset[str] = field(default_factory=lambda: frozenset({"read"}))

    def __post_init__(self) -> None:
        for scope in self.values:
            if not _SCOPE_RE.match(scope):
                raise ValueError(f"Invalid OAuth scope: {scope!r}")

    @classmethod
    def parse(cls, raw: str | Iterable[str]) -> Scopes:
        """Parse a space-separated scope string (or an iterable of scopes)."""
        tokens = raw.split() if isinstance(raw, str) else list(raw)
        if not tokens:
            raise ValueError("Scope string must name at least one scope")
        return cls(frozenset(tokens))

    @classmethod
    def read_all(cls) -> Scopes:
        return cls(frozenset({"read"}))

    @classmethod
    def write_all(cls) -> Scopes:
        return cls(frozenset({"write"}))

    @classmethod
    def all(cls) -> Scopes:
        return cls(frozenset({"read", "write", "follow", "push"}))

    def __or__(self, other: Scopes) -> Scopes:
        return Scopes(self.values | other.values)

    def __contains__(self, scope: str) -> bool:
        return self._implies(scope)

    def _implies(self, scope: str) -> bool:
        if scope in self.values:
            return True
        family, _, _ = scope.partition(":")
        if family in ("read", "write") and family in self.values:
            return True
        if scope.startswith("admin:"):
            # admin:read:accounts is covered by admin:read
            parent = ":".join(scope.split(":")[:2])
            return parent in self.values
        return "follow" in self.values and scope in _FOLLOW_IMPLIES

    def covers(self, other: Scopes) -> bool:
        """True if every scope in `other` is granted by this set."""
        return all(self._implies(scope) for scope in other.values)

    def __str__(self) -> str:
        top = [s for s in _TOP_LEVEL_ORDER if s in self.values]
        rest = sorted(self.values.difference(top))
        return " ".join(top + rest)

    def __repr__(self) -> str:
        return f"Scopes({str(self)!r})"
