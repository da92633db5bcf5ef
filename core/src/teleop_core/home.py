from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class TeleopPaths:
    home: Path
    config_dir: Path
    logs_dir: Path
    web_dir: Path
    users_file: Path | None = None

    @property
    def core_config_path(self) -> Path:
        return self.config_dir / "core.json"

    @property
    def users_path(self) -> Path:
        if self.users_file is not None:
            return self.users_file
        return self.config_dir / "users.json"


DEFAULT_HOME_DIRNAME = ".teleop-relay"


def resolve_teleop_home(environ: dict[str, str] | None = None) -> Path:
    """TELEOP_HOME if set, else ~/.teleop-relay.

    Relative values hang off the user's home directory, never the working directory.
    """

    env = os.environ if environ is None else environ
    raw = (env.get("TELEOP_HOME") or "").strip()
    candidate = Path(raw).expanduser() if raw else Path(DEFAULT_HOME_DIRNAME)
    if not candidate.is_absolute():
        candidate = Path.home() / candidate
    return candidate.resolve()


def ensure_teleop_layout(home: Path) -> TeleopPaths:
    home.mkdir(parents=True, exist_ok=True)

    config_dir = home / "config"
    logs_dir = home / "logs"
    web_dir = home / "web"

    for path in (config_dir, logs_dir, web_dir):
        path.mkdir(parents=True, exist_ok=True)

    return TeleopPaths(
        home=home,
        config_dir=config_dir,
        logs_dir=logs_dir,
        web_dir=web_dir,
    )
