"""Run the page publisher web server.

Configuration is read once from the environment (and a ``.env`` file in the
working directory) before the server starts. The process exits with status 1
when ``GITHUB_TOKEN``, ``GITHUB_OWNER`` or ``GITHUB_REPO`` is missing.
"""
from __future__ import annotations

import argparse
import dataclasses
import logging
import os
from pathlib import Path
from typing import Sequence

import uvicorn

from pagepublisher.config import ConfigurationError, Settings
from pagepublisher.main import create_app

LOGGER = logging.getLogger("pagepublisher.serve")


def _configure_logging() -> None:
    """Configure root logging based on ``PAGEPUB_LOG_LEVEL``."""
    level_name = os.getenv("PAGEPUB_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Serve the page builder and publish pages to GitHub Pages")
    parser.add_argument("--host", help="Address to bind (defaults to HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, help="Port to listen on (defaults to PORT or 3000)")
    parser.add_argument("--frontend-path", type=Path, help="Directory holding the static frontend")
    parser.add_argument("--env-file", type=Path, help="Path to a .env file to load before reading settings")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    _configure_logging()
    args = _parse_args(argv)

    try:
        settings = Settings.from_env(dotenv_path=args.env_file)
    except ConfigurationError as exc:
        LOGGER.error("ERROR: %s", exc)
        LOGGER.error("Please ensure GITHUB_TOKEN, GITHUB_OWNER, and GITHUB_REPO are set in your .env file.")
        return 1

    overrides = {
        "host": args.host,
        "port": args.port,
        "static_root": args.frontend_path,
    }
    settings = dataclasses.replace(settings, **{key: value for key, value in overrides.items() if value is not None})

    app = create_app(settings)
    LOGGER.info("Server running at http://localhost:%s", settings.port)
    LOGGER.info("Serving files from: %s", settings.static_root.resolve())
    LOGGER.info("Publishing pages to %s/%s on branch %s", settings.github_owner, settings.github_repo, settings.github_branch)
    uvicorn.run(app, host=settings.host, port=settings.port)
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
