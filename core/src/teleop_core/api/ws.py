from __future__ import annotations

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from teleop_core.relay.channel import WebSocketChannel
from teleop_core.relay.router import Router

logger = logging.getLogger(__name__)

router = APIRouter(tags=["relay"])


def _get_relay(websocket: WebSocket) -> Router | None:
    return getattr(websocket.app.state, "relay_router", None)


async def relay_socket(websocket: WebSocket) -> None:
    """One vehicle or operator connection.

    Frames are handed to the router in arrival order. The router is synchronous, so each
    message is handled to completion before the next event is processed.
    """

    relay = _get_relay(websocket)
    await websocket.accept()
    if relay is None:
        await websocket.close(code=1011, reason="Relay not ready")
        return

    channel = WebSocketChannel(websocket)
    channel.start()
    client = websocket.client
    logger.info(
        "New connection %s from %s",
        channel.name,
        f"{client.host}:{client.port}" if client is not None else "unknown",
    )

    try:
        while True:
            event = await websocket.receive()
            if event["type"] == "websocket.disconnect":
                break
            raw = event.get("text")
            if raw is None:
                raw = event.get("bytes") or b""
            relay.handle_raw(channel, raw)
    except WebSocketDisconnect:
        pass
    finally:
        # Synchronous so cleanup still completes when the receive loop is cancelled.
        relay.handle_disconnect(channel)
        logger.info("Connection %s closed", channel.name)


# Vehicles connect to the bare host; browsers use /ws.
router.add_api_websocket_route("/", relay_socket)
router.add_api_websocket_route("/ws", relay_socket)
