"""FastAPI application for the dreamhigh local JSON API."""

import secrets
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Security
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from .. import __version__
from ..core.errors import RecordNotFound, StoreFailure
from ..core.model import Application
from ..core.render import blocks_to_dicts


class ContentUpdate(BaseModel):
    content: str


class ImageWidthUpdate(BaseModel):
    url: str
    alt: str | None = None
    width: float


def _bearer_guard(token: str | None) -> Callable[..., Awaitable[None]]:
    """Dependency that checks the bearer token; a no-op when ``token`` is None."""
    if not token:

        async def open_access() -> None:
            return None

        return open_access

    bearer = HTTPBearer(auto_error=False)

    async def require_token(
        credentials: HTTPAuthorizationCredentials | None = Security(bearer),  # noqa: B008
    ) -> None:
        if credentials is None or not secrets.compare_digest(credentials.credentials, token):
            raise HTTPException(status_code=401, detail="Invalid or missing token")

    return require_token


def create_app(runtime: Any, token: str | None = None, enable_cors: bool = False) -> FastAPI:
    """
    Build the JSON API around a wired runtime.

    With a token every endpoint needs ``Authorization: Bearer <token>`` and
    the interactive docs are switched off. ``enable_cors`` lets a browser
    front end on another origin call the API.
    """
    app = FastAPI(
        title="Dreamhigh API",
        description="Local JSON API for job applications and résumé versions",
        version=__version__,
        docs_url=None if token else "/docs",
        redoc_url=None,
    )

    if enable_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["GET", "PUT", "POST"],
            allow_headers=["Authorization", "Content-Type"],
        )

    verify_token = _bearer_guard(token)

    tracker = runtime.tracker

    def _application(app_id: str) -> Application:
        try:
            return tracker.application(app_id)
        except RecordNotFound as e:
            raise HTTPException(status_code=404, detail=str(e)) from e

    @app.exception_handler(StoreFailure)
    async def store_failure(_request: Any, exc: StoreFailure) -> JSONResponse:
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    @app.get("/health")
    async def health(auth: None = Depends(verify_token)) -> dict[str, Any]:
        """Health check endpoint."""
        return {"status": "ok", "schema_version": runtime.records.schema_version()}

    @app.get("/applications")
    async def list_applications(auth: None = Depends(verify_token)) -> list[dict[str, Any]]:
        """All applications, most recently applied first."""
        return [a.to_dict() for a in tracker.records.fetch_applications()]

    @app.get("/applications/{app_id}")
    async def get_application(app_id: str, auth: None = Depends(verify_token)) -> dict[str, Any]:
        return _application(app_id).to_dict()

    @app.get("/applications/{app_id}/blocks")
    async def get_blocks(app_id: str, auth: None = Depends(verify_token)) -> dict[str, Any]:
        """Parsed display blocks of the application's note."""
        application = _application(app_id)
        blocks = tracker.parser.parse(application.content)
        return {
            "id": application.id,
            "blocks": blocks_to_dicts(blocks, tracker.parser.split_inline),
        }

    @app.put("/applications/{app_id}/content")
    async def put_content(
        app_id: str, body: ContentUpdate, auth: None = Depends(verify_token)
    ) -> dict[str, Any]:
        _application(app_id)
        return tracker.edit_content(app_id, body.content).to_dict()

    @app.post("/applications/{app_id}/image-width")
    async def post_image_width(
        app_id: str, body: ImageWidthUpdate, auth: None = Depends(verify_token)
    ) -> dict[str, Any]:
        """Rewrite the width annotation of an embedded image (clamped)."""
        _application(app_id)
        content = tracker.set_image_width(app_id, body.url, body.alt, body.width)
        return {"id": app_id, "content": content}

    @app.get("/resumes")
    async def list_resumes(auth: None = Depends(verify_token)) -> list[dict[str, Any]]:
        return [v.to_dict() for v in tracker.records.fetch_resume_versions()]

    return app


def generate_token() -> str:
    """Random token for `dreamhigh serve --token auto`."""
    return secrets.token_urlsafe(32)
