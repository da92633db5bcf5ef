from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler

import uvicorn

from teleop_core.app import create_app
from teleop_core.config import load_core_config, resolve_configured_paths
from teleop_core.home import ensure_teleop_layout, resolve_teleop_home

logger = logging.getLogger("teleop_core")


def main() -> None:
    home = resolve_teleop_home()
    paths = ensure_teleop_layout(home)
    config = load_core_config(paths)
    paths = resolve_configured_paths(paths, config)

    # Configure logging
    log_file = paths.logs_dir / "core.log"
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            RotatingFileHandler(log_file, maxBytes=10 * 1024 * 1024, backupCount=5),
            logging.StreamHandler(),
        ],
    )

    host = os.environ.get("TELEOP_BIND") or config.network.bind_host

    env_port = os.environ.get("TELEOP_PORT")
    port = int(env_port) if env_port else config.network.core_port

    logger.info("Relay running at http://%s:%d", host, port)
    logger.info("WebSocket endpoints: ws://%s:%d/ and ws://%s:%d/ws", host, port, host, port)
    logger.info("=" * 50)

    uvicorn.run(create_app(), host=host, port=port)


if __name__ == "__main__":
    main()
