"""Request and result structures exchanged with the page publisher."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class PublishErrorKind(str, Enum):
    """Failure categories reported to callers of the publisher."""

    INVALID_REQUEST = "invalid-request"
    REMOTE_UNAVAILABLE = "remote-unavailable"
    PUBLISH_FAILED = "publish-failed"

    @property
    def status_code(self) -> int:
        return 400 if self is PublishErrorKind.INVALID_REQUEST else 500


def _optional_text(value: str | None) -> str | None:
    if value is None:
        return None
    return value if value.strip() else None


@dataclass(slots=True)
class PublishRequest:
    """Page content submitted for publication.

    ``name`` is the requested title or file name and ``html`` the page body.
    Separate ``css`` and ``js`` are embedded into a single document when given.
    """

    name: str
    html: str
    css: str | None = None
    js: str | None = None
    commit_message: str | None = None

    def __post_init__(self) -> None:
        self.css = _optional_text(self.css)
        self.js = _optional_text(self.js)
        self.commit_message = _optional_text(self.commit_message)

    def missing_fields(self) -> list[str]:
        """Return the names of required fields that are absent or blank."""

        missing: list[str] = []
        if not self.name.strip():
            missing.append("fileName")
        if not self.html.strip():
            missing.append("htmlContent")
        return missing

    @property
    def has_assets(self) -> bool:
        return self.css is not None or self.js is not None


@dataclass(slots=True)
class PublishResult:
    """Outcome of a publish attempt."""

    success: bool
    message: str
    url: str | None = None
    path: str | None = None
    commit_sha: str | None = None
    created: bool | None = None
    error: PublishErrorKind | None = None
    detail: str | None = None

    @classmethod
    def failure(
        cls,
        error: PublishErrorKind,
        message: str,
        *,
        path: str | None = None,
        detail: str | None = None,
    ) -> "PublishResult":
        return cls(success=False, message=message, path=path, error=error, detail=detail)

    @property
    def status_code(self) -> int:
        return 200 if self.error is None else self.error.status_code

    def to_response(self) -> dict[str, Any]:
        """Return the JSON body sent back to HTTP clients."""

        if self.success:
            return {
                "success": True,
                "message": self.message,
                "url": self.url,
                "githubFileUrl": self.url,
                "commitSha": self.commit_sha,
                "path": self.path,
                "created": self.created,
            }

        body: dict[str, Any] = {"success": False, "message": self.message}
        if self.error is not None:
            body["error"] = self.error.value
        if self.detail:
            body["detail"] = self.detail
        return body
