"""Persisted credential shape.

`Data` is the minimal value needed to build an AuthenticatedClient without
running registration again. Save it with `model_dump_json()` and load it
back with `Data.model_validate_json()`, or read it from the environment.
"""

from __future__ import annotations

import os

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..core.exceptions import CredentialError
from .credentials import OOB_REDIRECT_URI

_ENV_KEYS = ("BASE", "CLIENT_ID", "CLIENT_SECRET", "REDIRECT", "TOKEN")


class Data(BaseModel):
    """Base URL, app credential and access token of one authorized user."""

    base: str = Field(..., min_length=1)
    client_id: str = Field(..., min_length=1)
    client_secret: str = Field(..., min_length=1, repr=False)
    redirect: str = OOB_REDIRECT_URI
    token: str = Field(..., min_length=1, repr=False)

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    @field_validator("base")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @classmethod
    def from_env(cls, prefix: str = "") -> Data:
        """Read `<prefix>BASE`, `<prefix>CLIENT_ID`, ... from the environment.

        Raises:
            CredentialError: If a required key is missing or blank
        """
        values = {}
        for key in _ENV_KEYS:
            value = os.environ.get(f"{prefix}{key}")
            if value:
                values[key.lower()] = value

        missing = [f"{prefix}{key}" for key in _ENV_KEYS if key != "REDIRECT" and key.lower() not in values]
        if missing:
            raise CredentialError(f"Missing environment variables: {', '.join(missing)}")

        try:
            return cls(**values)
        except ValidationError as e:
            raise CredentialError(f"Invalid credential data in environment: {e}") from e
