"""Value types and errors shared by the Pivotal Tracker integration."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class MembershipRole(StrEnum):
    """Role of a person within a Tracker project."""

    OWNER = "owner"
    MEMBER = "member"
    VIEWER = "viewer"


class TrackerError(RuntimeError):
    """Upstream call failed or returned an unexpected payload."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MemberCacheError(RuntimeError):
    """Member cache backend could not be read or written."""


@dataclass
class TrackerUser:
    """Person to invite, identified by email."""

    email: str
    name: str | None = None


@dataclass
class ProjectOptions:
    """Options for project creation.

    account_id falls back to the configured default account when None.
    """

    account_id: str | int | None = None
    description: str | None = None
    private: bool = False
    user: TrackerUser | None = None


@dataclass
class TrackerResult:
    """Outcome of a Tracker operation.

    Either ok with the upstream payload in ``data``, or not ok with a
    human-readable ``error``. ``invited_user`` is only set by project
    creation and is independent of the outer ``ok``.
    """

    ok: bool
    data: Any = None
    error: str | None = None
    url: str | None = None
    invited_user: TrackerResult | None = None

    @classmethod
    def success(cls, data: Any = None, url: str | None = None) -> TrackerResult:
        return cls(ok=True, data=data, url=url)

    @classmethod
    def failure(cls, error: str) -> TrackerResult:
        return cls(ok=False, error=error)

    def as_envelope(self) -> dict[str, Any]:
        """Render as a flat ``{"ok": ..., ...}`` dict for chat-style callers.

        Dict payloads are merged into the envelope; any other payload is
        placed under ``data``.
        """
        if not self.ok:
            return {"ok": False, "error": self.error}
        envelope: dict[str, Any] = {}
        if isinstance(self.data, dict):
            envelope.update(self.data)
        elif self.data is not None:
            envelope["data"] = self.data
        envelope["ok"] = True
        if self.url is not None:
            envelope["url"] = self.url
        if self.invited_user is not None:
            envelope["invited_user"] = self.invited_user.as_envelope()
        return envelope
