"""In-memory collaborators shared by the tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import count
from typing import Any

from pagepublisher.models.github import CommitReceipt, Committer, RemoteFile, WritePrecondition
from pagepublisher.services.github import GitHubAPIError, RevisionConflictError


@dataclass(slots=True)
class FakeContentsHost:
    """In-memory stand-in for the GitHub contents API.

    Files map a path to its current blob sha. Writes enforce the precondition
    the way GitHub does, so stale revisions are rejected.
    """

    owner: str = "octo"
    repo: str = "pages"
    files: dict[str, str] = field(default_factory=dict)
    check_error: GitHubAPIError | None = None
    write_error: GitHubAPIError | None = None
    concurrent_sha: str | None = None
    reads: list[str] = field(default_factory=list, init=False)
    writes: list[dict[str, Any]] = field(default_factory=list, init=False)
    _sequence: Any = field(default_factory=lambda: count(1), init=False)

    def get_file(self, path: str, *, branch: str) -> RemoteFile | None:
        self.reads.append(path)
        if self.check_error is not None:
            raise self.check_error
        sha = self.files.get(path)
        if sha is None:
            return None
        if self.concurrent_sha is not None:
            # Another writer lands between the read and our write.
            self.files[path] = self.concurrent_sha
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
        self.writes.append(
            {
                "path": path,
                "content": content,
                "message": message,
                "branch": branch,
                "sha": precondition.expected_sha,
                "committer": committer,
            }
        )
        if self.write_error is not None:
            raise self.write_error

        current = self.files.get(path)
        if current != precondition.expected_sha:
            if precondition.expected_sha is None:
                raise RevisionConflictError('Invalid request.\n\n"sha" wasn\'t supplied.', status_code=422)
            raise RevisionConflictError(f"{path} does not match {precondition.expected_sha}", status_code=409)

        sequence = next(self._sequence)
        self.files[path] = f"blob{sequence}"
        return CommitReceipt(path=path, commit_sha=f"commit{sequence}", content_sha=f"blob{sequence}")
