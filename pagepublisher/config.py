"""Process-wide settings resolved once from the environment at startup."""

from __future__ import annotations

from dataclasses import dataclass, field
import os
import re
from pathlib import Path
from typing import Mapping

from dotenv import load_dotenv

from pagepublisher.models.github import Committer


NAMING_POLICIES = ("title", "timestamp")
DEFAULT_PUBLISH_ROUTE = "/api/create-github-file"
_DIRECTORY_SEGMENT = re.compile(r"^[A-Za-z0-9._-]+$")


class ConfigurationError(ValueError):
    """Raised when required settings are missing or malformed."""


def _read_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw_value = (environ.get(name) or "").strip()
    if not raw_value:
        return default
    try:
        return int(raw_value)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw_value!r}") from exc


def _read_float(environ: Mapping[str, str], name: str, default: float) -> float:
    raw_value = (environ.get(name) or "").strip()
    if not raw_value:
        return default
    try:
        return float(raw_value)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw_value!r}") from exc


def _read_text(environ: Mapping[str, str], name: str) -> str | None:
    value = (environ.get(name) or "").strip()
    return value or None


def _read_directory(environ: Mapping[str, str], name: str) -> str:
    value = (_read_text(environ, name) or "").strip("/")
    if not value:
        return ""
    for segment in value.split("/"):
        if segment in (".", "..") or not _DIRECTORY_SEGMENT.match(segment):
            raise ConfigurationError(f"{name} must be a relative path of safe segments, got {value!r}")
    return value


@dataclass(slots=True, frozen=True)
class Settings:
    """Immutable configuration shared by the web app and the publisher."""

    github_token: str = field(repr=False)
    github_owner: str
    github_repo: str
    github_branch: str = "main"
    github_api_url: str = "https://api.github.com"
    host: str = "0.0.0.0"
    port: int = 3000
    allowed_origin: str | None = None
    static_root: Path = Path("public")
    publish_route: str = DEFAULT_PUBLISH_ROUTE
    naming_policy: str = "title"
    target_directory: str = ""
    rate_limit: int = 0
    rate_window_seconds: float = 60.0
    committer: Committer | None = None
    http_timeout: float = 30.0

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        dotenv_path: Path | None = None,
    ) -> "Settings":
        """Build settings from ``environ`` (``os.environ`` by default).

        When reading the real process environment a ``.env`` file is loaded
        first; variables already set take precedence over it.
        """

        if environ is None:
            load_dotenv(dotenv_path or Path.cwd() / ".env", override=False)
            environ = os.environ

        required = {
            "GITHUB_TOKEN": _read_text(environ, "GITHUB_TOKEN"),
            "GITHUB_OWNER": _read_text(environ, "GITHUB_OWNER"),
            "GITHUB_REPO": _read_text(environ, "GITHUB_REPO"),
        }
        missing = [name for name, value in required.items() if value is None]
        if missing:
            raise ConfigurationError(
                "Missing GitHub configuration: " + ", ".join(missing) + " must be set."
            )

        naming_policy = (_read_text(environ, "PAGEPUB_NAMING_POLICY") or "title").lower()
        if naming_policy not in NAMING_POLICIES:
            raise ConfigurationError(
                f"PAGEPUB_NAMING_POLICY must be one of {', '.join(NAMING_POLICIES)}, got {naming_policy!r}"
            )

        publish_route = _read_text(environ, "PAGEPUB_PUBLISH_ROUTE") or DEFAULT_PUBLISH_ROUTE
        if not publish_route.startswith("/"):
            publish_route = f"/{publish_route}"

        committer_name = _read_text(environ, "PAGEPUB_COMMITTER_NAME")
        committer_email = _read_text(environ, "PAGEPUB_COMMITTER_EMAIL")
        committer = (
            Committer(name=committer_name, email=committer_email)
            if committer_name and committer_email
            else None
        )

        rate_limit = _read_int(environ, "PAGEPUB_RATE_LIMIT", 0)
        if rate_limit < 0:
            raise ConfigurationError("PAGEPUB_RATE_LIMIT must not be negative")
        rate_window_seconds = _read_float(environ, "PAGEPUB_RATE_WINDOW_SECONDS", 60.0)
        if rate_window_seconds <= 0:
            raise ConfigurationError("PAGEPUB_RATE_WINDOW_SECONDS must be positive")

        return cls(
            github_token=required["GITHUB_TOKEN"],
            github_owner=required["GITHUB_OWNER"],
            github_repo=required["GITHUB_REPO"],
            github_branch=_read_text(environ, "GITHUB_BRANCH") or "main",
            github_api_url=(_read_text(environ, "GITHUB_API_URL") or "https://api.github.com").rstrip("/"),
            host=_read_text(environ, "HOST") or "0.0.0.0",
            port=_read_int(environ, "PORT", 3000),
            allowed_origin=_read_text(environ, "ALLOWED_ORIGIN"),
            static_root=Path(_read_text(environ, "FRONTEND_PATH") or "public"),
            publish_route=publish_route,
            naming_policy=naming_policy,
            target_directory=_read_directory(environ, "PAGEPUB_TARGET_DIRECTORY"),
            rate_limit=rate_limit,
            rate_window_seconds=rate_window_seconds,
            committer=committer,
            http_timeout=_read_float(environ, "PAGEPUB_HTTP_TIMEOUT", 30.0),
        )
