"""Helpers that turn submitted page content into a repository file."""

from __future__ import annotations

import base64
from datetime import datetime, timezone
from pathlib import Path
import re

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from pagepublisher.models.publish import PublishRequest


TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
DEFAULT_PAGE_TITLE = "My Generated Page"

_FILENAME_LIKE = re.compile(r"^(?!/)(?!.*\.\.)[A-Za-z0-9._/-]+$")
_WHITESPACE = re.compile(r"\s+")
_UNSAFE = re.compile(r"[^a-z0-9._-]+")
_REPEATED_HYPHENS = re.compile(r"-{2,}")
_HTML_SUFFIX = re.compile(r"\.html$", re.IGNORECASE)
_ALPHANUMERIC = re.compile(r"[A-Za-z0-9]")

_environment = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=False,
    undefined=StrictUndefined,
    keep_trailing_newline=True,
)


def _slugify(value: str) -> str:
    """Lower-case ``value`` and replace whitespace with hyphens."""

    normalised = _WHITESPACE.sub("-", value.strip().lower())
    normalised = _UNSAFE.sub("", normalised)
    normalised = _REPEATED_HYPHENS.sub("-", normalised)
    return normalised.strip("-.") or "page"


def _is_filename_like(candidate: str) -> bool:
    """Every path segment of the stem must carry at least one letter or digit."""

    if not _FILENAME_LIKE.match(candidate):
        return False
    segments = _HTML_SUFFIX.sub("", candidate).split("/")
    return all(_ALPHANUMERIC.search(segment) for segment in segments)


def _ensure_html_suffix(name: str) -> str:
    return name if _HTML_SUFFIX.search(name) else f"{name}.html"


def derive_filename(name: str) -> str:
    """Return the repository file name for a requested page title.

    Names that already look like a file path are kept verbatim; anything else
    is slugified. A ``.html`` suffix is added when missing.
    """

    candidate = name.strip()
    if not _is_filename_like(candidate):
        candidate = _slugify(candidate)
    return _ensure_html_suffix(candidate)


def timestamped_filename(name: str, *, now: datetime | None = None) -> str:
    """Return a title-derived file name made unique with a UTC timestamp."""

    moment = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    stem = _HTML_SUFFIX.sub("", derive_filename(name))
    return f"{stem}-{moment.strftime('%Y%m%d-%H%M%S')}.html"


def page_title(filename: str) -> str:
    """Return the document title for ``filename`` without directories or suffix."""

    stem = _HTML_SUFFIX.sub("", filename.rsplit("/", 1)[-1]).strip()
    return stem or DEFAULT_PAGE_TITLE


def assemble_document(request: PublishRequest, *, filename: str) -> str:
    """Return the file body to publish.

    Requests carrying separate CSS or JavaScript are rendered into a single
    self-contained HTML document; otherwise the submitted content is returned
    unchanged.
    """

    if not request.has_assets:
        return request.html

    template = _environment.get_template("page.html.j2")
    return template.render(
        title=page_title(filename),
        body=request.html,
        css=request.css,
        js=request.js,
    )


def encode_content(document: str) -> str:
    """Base64-encode ``document`` as the contents API expects."""

    return base64.b64encode(document.encode("utf-8")).decode("ascii")
