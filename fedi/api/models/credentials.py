"""OAuth credential models.

All models are frozen: an AppCredential never changes after registration and
a UserToken is replaced wholesale on re-authorization, never mutated.
Secrets are excluded from repr so they do not leak into logs.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from .scopes import Scopes

OOB_REDIRECT_URI = "urn:ietf:wg:oauth:2.0:oob"


def _coerce_scopes(value: Any) -> Any:
    if isinstance(value, Scopes):
        return value
    if isinstance(value, (str, list, tuple, set, frozenset)):
        return Scopes.parse(value)
    return value


class ApplicationForm(BaseModel):
    """Metadata POSTed to the app-creation endpoint."""

    client_name: str = Field(..., min_length=1)
    redirect_uris: str = OOB_REDIRECT_URI
    scopes: Scopes = Field(default_factory=Scopes.read_all)
    website: str | None = None

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True, arbitrary_types_allowed=True)

    @field_validator("scopes", mode="before")
    @classmethod
    def parse_scopes(cls, v: Any) -> Any:
        return _coerce_scopes(v)

    def to_form(self) -> dict[str, str]:
        form = {
            "client_name": self.client_name,
            "redirect_uris": self.redirect_uris,
            "scopes": str(self.scopes),
        }
        if self.website:
            form["website"] = self.website
        return form


class AppCredential(BaseModel):
    """A registered application on one instance."""

    base_url: str = Field(..., min_length=1)
    client_id: str = Field(..., min_length=1)
    client_secret: str = Field(..., min_length=1, repr=False)
    redirect_uri: str = OOB_REDIRECT_URI
    granted_scopes: Scopes = Field(default_factory=Scopes.read_all)

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True, arbitrary_types_allowed=True)

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("granted_scopes", mode="before")
    @classmethod
    def parse_scopes(cls, v: Any) -> Any:
        return _coerce_scopes(v)

    @field_serializer("granted_scopes")
    def serialize_scopes(self, scopes: Scopes) -> str:
        return str(scopes)


class UserToken(BaseModel):
    """Access token obtained from the token endpoint."""

    access_token: str = Field(..., min_length=1, repr=False)
    token_type: str = "Bearer"
    scope: str = "read"
    created_at: int | None = None
    refresh_token: str | None = Field(default=None, repr=False)

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True, extra="ignore")

    @property
    def scopes(self) -> Scopes:
        return Scopes.parse(self.scope or "read")

    @property
    def authorization(self) -> str:
        """Value for the Authorization request header."""
        token_type = "Bearer" if self.token_type.lower() == "bearer" else self.token_type
        return f"{token_type} {self.access_token}"
