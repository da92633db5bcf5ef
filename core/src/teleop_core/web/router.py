from __future__ import annotations

import logging
import mimetypes
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import FileResponse, HTMLResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel
from starlette.responses import Response

from teleop_core.api.models import ApiResponse, ok
from teleop_core.auth import CredentialStore, get_credentials

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent
TEMPLATES_DIR = BASE_DIR / "templates"

INDEX_FILE = "index.html"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

router = APIRouter(tags=["web"])


class LoginRequest(BaseModel):
    username: str
    password: str


class LoginResult(BaseModel):
    username: str


@router.post("/login", response_model=ApiResponse[LoginResult])
async def login(
    body: LoginRequest,
    credentials: CredentialStore = Depends(get_credentials),  # noqa: B008
) -> ApiResponse[LoginResult]:
    if not credentials.check(body.username, body.password):
        logger.info("Rejected login for %s", body.username)
        raise HTTPException(status_code=401, detail="Invalid username or password")
    logger.info("Login accepted for %s", body.username)
    return ok(LoginResult(username=body.username))


def _get_web_dir(request: Request) -> Path:
    paths = getattr(request.app.state, "teleop_paths", None)
    if paths is None:
        raise HTTPException(status_code=500, detail="Web directory not initialized")
    return paths.web_dir


def resolve_asset(web_dir: Path, asset_path: str) -> Path | None:
    """Map a request path onto a file under ``web_dir``; None if absent or outside it."""

    root = web_dir.resolve()
    rel = asset_path.strip("/") or INDEX_FILE
    candidate = (root / rel).resolve()
    if not candidate.is_relative_to(root):
        return None
    if candidate.is_dir():
        candidate = candidate / INDEX_FILE
    if not candidate.is_file():
        return None
    return candidate


def _not_found(request: Request) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "not_found.html",
        {"title": "404 • Page not found", "path": request.url.path},
        status_code=404,
    )


# Registered last: this catches every GET that no other route claimed.
@router.get("/{asset_path:path}", response_model=None, include_in_schema=False)
async def static_asset(request: Request, asset_path: str) -> Response:
    target = resolve_asset(_get_web_dir(request), asset_path)
    if target is None:
        return _not_found(request)

    media_type, _ = mimetypes.guess_type(target.name)
    return FileResponse(target, media_type=media_type or "application/octet-stream")
