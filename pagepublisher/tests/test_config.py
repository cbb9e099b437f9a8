from __future__ import annotations

from pathlib import Path

import pytest

from pagepublisher.config import ConfigurationError, Settings
from pagepublisher.models.github import Committer


REQUIRED = {
    "GITHUB_TOKEN": "ghp_test",
    "GITHUB_OWNER": "octo",
    "GITHUB_REPO": "pages",
}


def test_defaults_applied_when_only_required_values_set() -> None:
    settings = Settings.from_env(dict(REQUIRED))

    assert settings.github_branch == "main"
    assert settings.port == 3000
    assert settings.publish_route == "/api/create-github-file"
    assert settings.naming_policy == "title"
    assert settings.static_root == Path("public")
    assert settings.allowed_origin is None
    assert settings.rate_limit == 0
    assert settings.committer is None


@pytest.mark.parametrize("missing", sorted(REQUIRED))
def test_missing_required_value_raises(missing: str) -> None:
    environ = dict(REQUIRED)
    environ[missing] = "  "

    with pytest.raises(ConfigurationError, match=missing):
        Settings.from_env(environ)


def test_overrides_are_parsed() -> None:
    environ = {
        **REQUIRED,
        "GITHUB_BRANCH": "gh-pages",
        "GITHUB_API_URL": "https://github.example.com/api/v3/",
        "PORT": "8080",
        "ALLOWED_ORIGIN": "https://builder.example.com",
        "FRONTEND_PATH": "../frontend-repo/public",
        "PAGEPUB_PUBLISH_ROUTE": "publish",
        "PAGEPUB_NAMING_POLICY": "Timestamp",
        "PAGEPUB_TARGET_DIRECTORY": "/sites/",
        "PAGEPUB_RATE_LIMIT": "10",
        "PAGEPUB_RATE_WINDOW_SECONDS": "30",
        "PAGEPUB_COMMITTER_NAME": "Website Builder Bot",
        "PAGEPUB_COMMITTER_EMAIL": "builder@example.com",
    }

    settings = Settings.from_env(environ)

    assert settings.github_branch == "gh-pages"
    assert settings.github_api_url == "https://github.example.com/api/v3"
    assert settings.port == 8080
    assert settings.allowed_origin == "https://builder.example.com"
    assert settings.static_root == Path("../frontend-repo/public")
    assert settings.publish_route == "/publish"
    assert settings.naming_policy == "timestamp"
    assert settings.target_directory == "sites"
    assert settings.rate_limit == 10
    assert settings.rate_window_seconds == 30.0
    assert settings.committer == Committer(name="Website Builder Bot", email="builder@example.com")


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("PORT", "three-thousand"),
        ("PAGEPUB_NAMING_POLICY", "random"),
        ("PAGEPUB_RATE_LIMIT", "-1"),
        ("PAGEPUB_HTTP_TIMEOUT", "soon"),
        ("PAGEPUB_RATE_WINDOW_SECONDS", "0"),
        ("PAGEPUB_RATE_WINDOW_SECONDS", "-5"),
        ("PAGEPUB_TARGET_DIRECTORY", "my sites"),
        ("PAGEPUB_TARGET_DIRECTORY", "sites/../secret"),
        ("PAGEPUB_TARGET_DIRECTORY", "a//b"),
    ],
)
def test_invalid_values_raise(name: str, value: str) -> None:
    with pytest.raises(ConfigurationError):
        Settings.from_env({**REQUIRED, name: value})


def test_settings_are_immutable_and_hide_token() -> None:
    settings = Settings.from_env(dict(REQUIRED))

    with pytest.raises(AttributeError):
        settings.github_owner = "someone-else"  # type: ignore[misc]
    assert "ghp_test" not in repr(settings)


def test_from_process_environment_loads_dotenv(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    for name in REQUIRED:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.setenv("GITHUB_OWNER", "from-process")
    env_file = tmp_path / ".env"
    env_file.write_text(
        "GITHUB_TOKEN=ghp_dotenv\nGITHUB_OWNER=from-dotenv\nGITHUB_REPO=site\n",
        encoding="utf-8",
    )

    settings = Settings.from_env(dotenv_path=env_file)

    assert settings.github_token == "ghp_dotenv"
    assert settings.github_owner == "from-process"
    assert settings.github_repo == "site"


def test_nested_target_directory_is_accepted() -> None:
    settings = Settings.from_env({**REQUIRED, "PAGEPUB_TARGET_DIRECTORY": "sites/2024_v1/"})

    assert settings.target_directory == "sites/2024_v1"
