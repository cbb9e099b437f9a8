"""Data structures describing files stored in a GitHub repository."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class RemoteFile:
    """A file as reported by the GitHub contents API."""

    owner: str
    repo: str
    path: str
    branch: str
    sha: str


@dataclass(slots=True, frozen=True)
class WritePrecondition:
    """Revision the host must observe before accepting a write.

    ``expected_sha`` of ``None`` means the file must not exist yet. Any other
    value must match the current blob sha or the host rejects the write.
    """

    expected_sha: str | None = None

    @classmethod
    def for_existing(cls, remote: RemoteFile | None) -> "WritePrecondition":
        return cls(expected_sha=remote.sha if remote is not None else None)

    @property
    def is_create(self) -> bool:
        return self.expected_sha is None


@dataclass(slots=True, frozen=True)
class Committer:
    name: str
    email: str

    def to_payload(self) -> dict[str, str]:
        return {"name": self.name, "email": self.email}


@dataclass(slots=True, frozen=True)
class CommitReceipt:
    """Identifiers returned by the host after a successful write."""

    path: str
    commit_sha: str
    content_sha: str | None = None
