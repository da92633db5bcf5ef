from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from teleop_core.home import TeleopPaths


class NetworkConfig(BaseModel):
    # Vehicles connect from the LAN, so listen on every interface unless told otherwise.
    bind_host: str = Field(default="0.0.0.0")
    core_port: int = Field(default=8080, ge=1, le=65535)


class PathOverrides(BaseModel):
    logs_dir: str | None = None
    web_dir: str | None = None
    users_file: str | None = Field(
        default=None,
        description="Optional path to the credentials JSON; if relative, resolved under TELEOP_HOME",
    )


class CorsConfig(BaseModel):
    allow_origins: list[str] = Field(default_factory=lambda: ["*"])
    allow_methods: list[str] = Field(default_factory=lambda: ["GET", "POST", "OPTIONS"])
    allow_headers: list[str] = Field(default_factory=lambda: ["Content-Type"])


class LoggingConfig(BaseModel):
    max_size_mb: int = Field(
        default=10, ge=1, description="Max size of a log file in MB before rolling."
    )
    backup_count: int = Field(default=5, ge=1, description="Number of log archives to keep.")


class RelayConfig(BaseModel):
    """Routing behaviour knobs.

    By default an operator bound to a vehicle that disconnects only learns about it on its
    next command. Enabling ``unbind_on_vehicle_disconnect`` clears the binding and notifies
    the operator as soon as the vehicle drops.
    """

    unbind_on_vehicle_disconnect: bool = Field(default=False)


class CoreConfig(BaseModel):
    version: str = Field(default="1")
    network: NetworkConfig = Field(default_factory=NetworkConfig)
    paths: PathOverrides = Field(default_factory=PathOverrides)
    cors: CorsConfig = Field(default_factory=CorsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    relay: RelayConfig = Field(default_factory=RelayConfig)


def _read_json(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def load_core_config(paths: TeleopPaths) -> CoreConfig:
    """Load config from ${TELEOP_HOME}/config/core.json.

    - If missing: returns defaults.
    - Validation is performed by Pydantic.
    """

    config_path = paths.core_config_path
    if not config_path.exists():
        return CoreConfig()

    raw = _read_json(config_path)
    return CoreConfig.model_validate(raw)


def write_core_config(paths: TeleopPaths, config: CoreConfig) -> None:
    """Persist config to ${TELEOP_HOME}/config/core.json."""

    payload = config.model_dump(mode="json", exclude_none=True)
    paths.config_dir.mkdir(parents=True, exist_ok=True)
    paths.core_config_path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")


def resolve_configured_paths(paths: TeleopPaths, config: CoreConfig) -> TeleopPaths:
    """Apply user-configurable path overrides from config.

    config/ itself is not configurable, since that is where core.json lives.
    """

    def _resolve(raw: str | None) -> Path | None:
        if raw is None or not str(raw).strip():
            return None
        candidate = Path(raw).expanduser()
        if not candidate.is_absolute():
            candidate = (paths.home / candidate).resolve()
        else:
            candidate = candidate.resolve()
        return candidate

    logs_dir = _resolve(config.paths.logs_dir) or paths.logs_dir
    web_dir = _resolve(config.paths.web_dir) or paths.web_dir
    users_file = _resolve(config.paths.users_file) or paths.users_file

    # Ensure overridden dirs exist so file edits are enough.
    for p in (logs_dir, web_dir):
        p.mkdir(parents=True, exist_ok=True)

    return TeleopPaths(
        home=paths.home,
        config_dir=paths.config_dir,
        logs_dir=logs_dir,
        web_dir=web_dir,
        users_file=users_file,
    )
