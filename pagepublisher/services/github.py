"""Thin client for the GitHub REST contents API."""

from __future__ import annotations

from collections.abc import Mapping
import logging
from typing import Any
from urllib.parse import quote

import httpx

from pagepublisher.models.github import CommitReceipt, Committer, RemoteFile, WritePrecondition

LOGGER = logging.getLogger(__name__)


class GitHubAPIError(RuntimeError):
    """Raised when GitHub rejects a request or cannot be reached.

    ``status_code`` is ``None`` for transport failures such as timeouts.
    ``message`` carries the host's own error text.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"{self.message} (HTTP {self.status_code})"


class RevisionConflictError(GitHubAPIError):
    """Raised when the presented blob sha does not match the current file."""


def _error_message(response: httpx.Response) -> str:
    """Extract GitHub's error message from ``response``."""

    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, Mapping):
        message = payload.get("message")
        if isinstance(message, str) and message.strip():
            return message.strip()
    text = response.text.strip()
    return text[:500] if text else response.reason_phrase or "Unknown GitHub error"


def _json_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        raise GitHubAPIError(
            "GitHub returned a response that is not JSON", status_code=response.status_code
        ) from exc


def _is_revision_conflict(response: httpx.Response, message: str) -> bool:
    if response.status_code == 409:
        return True
    return response.status_code == 422 and "sha" in message.lower()


class GitHubContentsClient:
    """Read and write single files in one repository."""

    _DEFAULT_HEADERS: Mapping[str, str] = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28",
        "User-Agent": "pagepublisher/1.0",
    }
    _DEFAULT_TIMEOUT = 30.0

    def __init__(
        self,
        *,
        token: str,
        owner: str,
        repo: str,
        api_url: str = "https://api.github.com",
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        if not token:
            raise ValueError("A GitHub token is required")
        self.owner = owner
        self.repo = repo
        headers = dict(self._DEFAULT_HEADERS)
        headers["Authorization"] = f"Bearer {token}"
        self._client = client or httpx.Client(
            base_url=api_url.rstrip("/"),
            headers=headers,
            timeout=timeout or self._DEFAULT_TIMEOUT,
        )
        if client is not None:
            self._client.headers.update(headers)

    def __enter__(self) -> "GitHubContentsClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _contents_url(self, path: str) -> str:
        return f"/repos/{quote(self.owner)}/{quote(self.repo)}/contents/{quote(path.lstrip('/'))}"

    def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return self._client.request(method, self._contents_url(path), **kwargs)
        except httpx.HTTPError as exc:
            LOGGER.warning(
                "GitHub request failed: %s %s: %s",
                method,
                path,
                exc,
                extra={"event": "github.transport_error"},
            )
            raise GitHubAPIError(f"Could not reach GitHub: {exc}") from exc

    def get_file(self, path: str, *, branch: str) -> RemoteFile | None:
        """Return the current file at ``path`` or ``None`` when it does not exist."""

        response = self._send("GET", path, params={"ref": branch})
        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise GitHubAPIError(_error_message(response), status_code=response.status_code)

        payload = _json_body(response)
        if not isinstance(payload, Mapping):
            raise GitHubAPIError(f"'{path}' refers to a directory, not a file", status_code=response.status_code)
        sha = payload.get("sha")
        if not isinstance(sha, str) or not sha:
            raise GitHubAPIError(f"GitHub returned no sha for '{path}'", status_code=response.status_code)

        return RemoteFile(owner=self.owner, repo=self.repo, path=path, branch=branch, sha=sha)

    def put_file(
        self,
        path: str,
        *,
        content: str,
        message: str,
        branch: str,
        precondition: WritePrecondition,
        committer: Committer | None = None,
    ) -> CommitReceipt:
        """Create or update ``path`` with base64 ``content`` in a single commit."""

        body: dict[str, Any] = {
            "message": message,
            "content": content,
            "branch": branch,
        }
        if precondition.expected_sha is not None:
            body["sha"] = precondition.expected_sha
        if committer is not None:
            body["committer"] = committer.to_payload()

        response = self._send("PUT", path, json=body)
        if response.status_code not in (200, 201):
            error_text = _error_message(response)
            if _is_revision_conflict(response, error_text):
                raise RevisionConflictError(error_text, status_code=response.status_code)
            raise GitHubAPIError(error_text, status_code=response.status_code)

        payload = _json_body(response)
        if not isinstance(payload, Mapping):
            raise GitHubAPIError("GitHub returned an unexpected commit response", status_code=response.status_code)
        commit = payload.get("commit")
        content_info = payload.get("content")
        commit_sha = commit.get("sha") if isinstance(commit, Mapping) else None
        content_sha = content_info.get("sha") if isinstance(content_info, Mapping) else None
        if not isinstance(commit_sha, str) or not commit_sha:
            raise GitHubAPIError("GitHub response did not include a commit sha", status_code=response.status_code)

        return CommitReceipt(path=path, commit_sha=commit_sha, content_sha=content_sha)
