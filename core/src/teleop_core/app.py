from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from teleop_core import __version__
from teleop_core.api.models import error_response
from teleop_core.api.v1.router import router as v1_router
from teleop_core.api.ws import router as ws_router
from teleop_core.auth import load_credentials
from teleop_core.config import CoreConfig, load_core_config, resolve_configured_paths
from teleop_core.home import ensure_teleop_layout, resolve_teleop_home
from teleop_core.relay.registry import OperatorRegistry, VehicleRegistry
from teleop_core.relay.router import Router
from teleop_core.web.router import router as web_router

logger = logging.getLogger(__name__)


def _load_startup_config() -> CoreConfig:
    # CORS middleware must be installed before the app starts, so read config eagerly here
    # as well as in the lifespan.
    paths = ensure_teleop_layout(resolve_teleop_home())
    return load_core_config(paths)


def create_app() -> FastAPI:
    @asynccontextmanager
    async def _lifespan(app: FastAPI):
        home = resolve_teleop_home()
        paths = ensure_teleop_layout(home)
        config = load_core_config(paths)
        paths = resolve_configured_paths(paths, config)

        # Configure Logging
        log_path = paths.logs_dir / "core.log"
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=config.logging.max_size_mb * 1024 * 1024,
            backupCount=config.logging.backup_count,
            encoding="utf-8",
        )
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        file_handler.setFormatter(formatter)

        root = logging.getLogger()
        root.setLevel(logging.INFO)
        # Avoid adding duplicate handlers if reloaded
        if not any(isinstance(h, RotatingFileHandler) for h in root.handlers):
            root.addHandler(file_handler)
        else:
            file_handler.close()

        logger.info("Teleop relay starting up")
        logger.info(f"Logs directory: {paths.logs_dir}")

        credentials = load_credentials(paths.users_path)
        logger.info("Loaded %d credential(s) from %s", len(credentials), paths.users_path)

        app.state.teleop_home = home
        app.state.teleop_paths = paths
        app.state.teleop_config = config
        app.state.credentials = credentials
        app.state.relay_router = Router(
            VehicleRegistry(),
            OperatorRegistry(),
            unbind_on_vehicle_disconnect=config.relay.unbind_on_vehicle_disconnect,
        )

        if not (paths.web_dir / "index.html").is_file():
            logger.warning("No index.html under %s; / will return 404", paths.web_dir)

        logger.info(
            "Serving HTTP and WebSocket on %s:%d",
            config.network.bind_host,
            config.network.core_port,
        )

        try:
            yield
        finally:
            vehicles, operators = app.state.relay_router.counts()
            logger.info(
                "Teleop relay shutting down (%d vehicle(s), %d operator(s) connected)",
                vehicles,
                operators,
            )

    app = FastAPI(title="Teleop Relay", version=__version__, lifespan=_lifespan)

    cors = _load_startup_config().cors
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors.allow_origins,
        allow_methods=cors.allow_methods,
        allow_headers=cors.allow_headers,
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        response = await call_next(request)
        logger.info(f"{request.method} {request.url.path} - {response.status_code}")
        return response

    @app.exception_handler(RequestValidationError)
    async def _validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return error_response(422, "Request validation failed", details=jsonable_encoder(exc.errors()))

    @app.exception_handler(HTTPException)
    async def _http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(StarletteHTTPException)
    async def _starlette_http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        message = exc.detail if isinstance(exc.detail, str) else "HTTP error"
        return error_response(exc.status_code, message)

    @app.exception_handler(Exception)
    async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled error on %s %s: %s", request.method, request.url.path, exc)
        return error_response(500, "Internal server error", code="internal_error")

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(v1_router)
    app.include_router(ws_router)
    # Static assets last; its catch-all GET would shadow anything registered after it.
    app.include_router(web_router)

    return app
