"""Publisher that upserts submitted pages into a GitHub Pages repository."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging
from typing import Protocol

from pagepublisher.config import Settings
from pagepublisher.models.github import CommitReceipt, Committer, RemoteFile, WritePrecondition
from pagepublisher.models.publish import PublishErrorKind, PublishRequest, PublishResult
from pagepublisher.services.document import (
    assemble_document,
    derive_filename,
    encode_content,
    timestamped_filename,
)
from pagepublisher.services.github import GitHubAPIError, GitHubContentsClient, RevisionConflictError


logger = logging.getLogger(__name__)


class SupportsRepositoryContents(Protocol):
    """Subset of :class:`GitHubContentsClient` relied upon by the publisher."""

    def get_file(self, path: str, *, branch: str) -> RemoteFile | None:
        """Return the file at ``path`` or ``None`` when it does not exist."""

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
        """Create or update ``path`` and return the resulting commit."""


def pages_url(owner: str, repo: str, path: str) -> str:
    """Return the public GitHub Pages URL for ``path``."""

    return f"https://{owner}.github.io/{repo}/{path}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class PagePublisher:
    """Validate a page, then create or update it with one commit."""

    contents: SupportsRepositoryContents
    owner: str
    repo: str
    branch: str = "main"
    naming_policy: str = "title"
    target_directory: str = ""
    committer: Committer | None = None
    clock: Callable[[], datetime] = field(default=_utcnow)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        contents: SupportsRepositoryContents | None = None,
    ) -> "PagePublisher":
        """Build a publisher wired to GitHub using ``settings``."""

        if contents is None:
            contents = GitHubContentsClient(
                token=settings.github_token,
                owner=settings.github_owner,
                repo=settings.github_repo,
                api_url=settings.github_api_url,
                timeout=settings.http_timeout,
            )
        return cls(
            contents=contents,
            owner=settings.github_owner,
            repo=settings.github_repo,
            branch=settings.github_branch,
            naming_policy=settings.naming_policy,
            target_directory=settings.target_directory,
            committer=settings.committer,
        )

    def publish(self, request: PublishRequest) -> PublishResult:
        """Publish ``request`` and report the outcome without raising."""

        missing = request.missing_fields()
        if missing:
            return PublishResult.failure(
                PublishErrorKind.INVALID_REQUEST,
                "Missing required fields: " + ", ".join(missing) + ".",
            )

        path = self.target_path(request.name)
        document = assemble_document(request, filename=path)
        encoded = encode_content(document)
        message = request.commit_message or f"Publish page: {request.name.strip()}"

        try:
            existing = self.contents.get_file(path, branch=self.branch)
        except GitHubAPIError as exc:
            logger.error(
                "Error checking file existence on GitHub for %s: %s",
                path,
                exc,
                extra={"event": "publish.check_failed", "status_code": exc.status_code},
            )
            return PublishResult.failure(
                PublishErrorKind.REMOTE_UNAVAILABLE,
                "Error checking file existence on GitHub.",
                path=path,
                detail=exc.message,
            )

        precondition = WritePrecondition.for_existing(existing)
        if precondition.is_create:
            logger.info("File %s does not exist; creating it", path, extra={"event": "publish.create"})
        else:
            logger.info("File %s exists; updating it", path, extra={"event": "publish.update"})

        try:
            receipt = self.contents.put_file(
                path,
                content=encoded,
                message=message,
                branch=self.branch,
                precondition=precondition,
                committer=self.committer,
            )
        except RevisionConflictError as exc:
            logger.warning(
                "Revision conflict while writing %s: %s",
                path,
                exc,
                extra={"event": "publish.conflict", "status_code": exc.status_code},
            )
            return self._write_failure(path, exc)
        except GitHubAPIError as exc:
            logger.error(
                "Error creating/updating %s on GitHub: %s",
                path,
                exc,
                extra={"event": "publish.write_failed", "status_code": exc.status_code},
            )
            return self._write_failure(path, exc)

        url = pages_url(self.owner, self.repo, path)
        logger.info(
            "Published %s at commit %s",
            path,
            receipt.commit_sha,
            extra={"event": "publish.success", "url": url},
        )
        return PublishResult(
            success=True,
            message="File successfully created/updated on GitHub!",
            url=url,
            path=path,
            commit_sha=receipt.commit_sha,
            created=precondition.is_create,
        )

    def target_path(self, name: str) -> str:
        """Return the repository path for a page called ``name``."""

        if self.naming_policy == "timestamp":
            filename = timestamped_filename(name, now=self.clock())
        else:
            filename = derive_filename(name)
        directory = self.target_directory.strip("/")
        return f"{directory}/{filename}" if directory else filename

    @staticmethod
    def _write_failure(path: str, exc: GitHubAPIError) -> PublishResult:
        return PublishResult.failure(
            PublishErrorKind.PUBLISH_FAILED,
            f"Failed to create/update file on GitHub: {exc.message}",
            path=path,
            detail=exc.message,
        )
