"""FastAPI application serving the page builder frontend and publish API."""

from __future__ import annotations

import logging

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from pagepublisher.config import Settings
from pagepublisher.models.publish import PublishErrorKind, PublishRequest
from pagepublisher.services.publisher import PagePublisher
from pagepublisher.services.rate_limit import FixedWindowRateLimiter

logger = logging.getLogger(__name__)


class PublishPayload(BaseModel):
    """JSON body accepted by the publish endpoint.

    Both the ``title``/``content`` and ``fileName``/``htmlContent`` spellings
    are accepted. Presence checks happen in :class:`PagePublisher`.
    """

    model_config = ConfigDict(extra="ignore")

    file_name: str | None = Field(default=None, validation_alias=AliasChoices("fileName", "title"))
    html_content: str | None = Field(default=None, validation_alias=AliasChoices("htmlContent", "content"))
    css_content: str | None = Field(default=None, validation_alias="cssContent")
    js_content: str | None = Field(default=None, validation_alias="jsContent")
    commit_message: str | None = Field(default=None, validation_alias="commitMessage")

    def to_request(self) -> PublishRequest:
        return PublishRequest(
            name=self.file_name or "",
            html=self.html_content or "",
            css=self.css_content,
            js=self.js_content,
            commit_message=self.commit_message,
        )


class RateLimitExceeded(Exception):
    def __init__(self, retry_after: int) -> None:
        super().__init__(f"Rate limit exceeded; retry in {retry_after}s")
        self.retry_after = retry_after


def get_settings(request: Request) -> Settings:
    """FastAPI dependency returning the settings the app was created with."""

    return request.app.state.settings


def get_publisher(request: Request) -> PagePublisher:
    """FastAPI dependency returning the shared publisher instance."""

    return request.app.state.publisher


def enforce_rate_limit(request: Request) -> None:
    """Reject the request when its client exceeded the publish rate limit."""

    limiter: FixedWindowRateLimiter = request.app.state.rate_limiter
    client_key = request.client.host if request.client else "anonymous"
    if not limiter.hit(client_key):
        logger.warning(
            "Publish rate limit exceeded for %s",
            client_key,
            extra={"event": "publish.rate_limited"},
        )
        raise RateLimitExceeded(limiter.retry_after(client_key))


def publish_page(
    payload: PublishPayload,
    publisher: PagePublisher = Depends(get_publisher),
) -> JSONResponse:
    """Publish the submitted page to GitHub and return its Pages URL."""

    request = payload.to_request()
    logger.info(
        "Publish request received",
        extra={"event": "publish.request", "content_length": len(request.html)},
    )

    try:
        result = publisher.publish(request)
    except Exception:
        logger.exception("Unexpected error while publishing", extra={"event": "publish.unexpected"})
        return JSONResponse(
            {"success": False, "message": "Failed to create/update file on GitHub."},
            status_code=500,
        )

    return JSONResponse(result.to_response(), status_code=result.status_code)


def healthz() -> dict[str, bool]:
    return {"ok": True}


def serve_frontend(full_path: str, settings: Settings = Depends(get_settings)):
    """Serve a static file from the frontend root, falling back to ``index.html``."""

    root = settings.static_root.resolve()
    if full_path:
        candidate = (root / full_path).resolve()
        if candidate.is_file() and candidate.is_relative_to(root):
            return FileResponse(candidate)

    index = root / "index.html"
    if index.is_file():
        return FileResponse(index)
    return JSONResponse({"detail": "Not Found"}, status_code=404)


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = sorted({str(error["loc"][-1]) for error in exc.errors() if error.get("loc")})
    message = "Invalid request body."
    if fields:
        message = f"Invalid request body: {', '.join(fields)}."
    return JSONResponse(
        {"success": False, "error": PublishErrorKind.INVALID_REQUEST.value, "message": message},
        status_code=400,
    )


async def _rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(
        {
            "success": False,
            "error": "rate-limited",
            "message": "Too many publish requests. Please try again later.",
        },
        status_code=429,
        headers={"Retry-After": str(exc.retry_after)},
    )


def create_app(settings: Settings, *, publisher: PagePublisher | None = None) -> FastAPI:
    """Return the configured FastAPI application."""

    app = FastAPI(title="Page Publisher")
    app.state.settings = settings
    app.state.publisher = publisher or PagePublisher.from_settings(settings)
    app.state.rate_limiter = FixedWindowRateLimiter(
        limit=settings.rate_limit,
        window_seconds=settings.rate_window_seconds,
    )

    if settings.allowed_origin:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[settings.allowed_origin],
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["*"],
        )

    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_handler)

    app.add_api_route("/healthz", healthz, methods=["GET"])
    app.add_api_route(
        settings.publish_route,
        publish_page,
        methods=["POST"],
        dependencies=[Depends(enforce_rate_limit)],
    )
    app.add_api_route("/{full_path:path}", serve_frontend, methods=["GET"], include_in_schema=False)

    logger.info(
        "Serving frontend from %s",
        settings.static_root.resolve(),
        extra={"event": "app.static_root"},
    )
    return app
