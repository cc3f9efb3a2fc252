"""Data models for credentials, pages and stream events.

Architecture:
    Credential models are Pydantic v2 frozen models so they validate wire
    payloads and persisted data. Page and event types are frozen dataclasses:
    they are built by the library from already-validated input.

Model Categories:
    - Credentials: ApplicationForm, AppCredential, UserToken, Scopes, Data
    - Pagination: CursorLink, Page, PageRequest
    - Events: StreamFrame and the StreamEvent union
"""

from .scopes import Scopes
from .credentials import OOB_REDIRECT_URI, AppCredential, ApplicationForm, UserToken
from .data import Data
from .events import (
    Delete,
    FiltersChanged,
    Notification,
    StreamEvent,
    StreamFrame,
    Unknown,
    Update,
)
from .page import CursorLink, Page, PageRequest

__all__ = [
    "OOB_REDIRECT_URI",
    "AppCredential",
    "ApplicationForm",
    "CursorLink",
    "Data",
    "Delete",
    "FiltersChanged",
    "Notification",
    "Page",
    "PageRequest",
    "Scopes",
    "StreamEvent",
    "StreamFrame",
    "Unknown",
    "Update",
    "UserToken",
]
