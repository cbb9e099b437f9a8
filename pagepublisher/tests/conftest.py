"""Shared fixtures and helpers for the test suite."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from pagepublisher.config import Settings
from pagepublisher.services.publisher import PagePublisher
from pagepublisher.tests.fakes import FakeContentsHost


@pytest.fixture()
def host() -> FakeContentsHost:
    return FakeContentsHost()


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        github_token="test-token",
        github_owner="octo",
        github_repo="pages",
        static_root=tmp_path / "public",
    )


@pytest.fixture()
def publisher(host: FakeContentsHost) -> PagePublisher:
    return PagePublisher(
        contents=host,
        owner="octo",
        repo="pages",
        clock=lambda: datetime(2024, 5, 17, 8, 30, 5, tzinfo=timezone.utc),
    )
