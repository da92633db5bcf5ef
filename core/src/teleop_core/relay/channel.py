from __future__ import annotations

import asyncio
import itertools
import logging
from abc import ABC, abstractmethod

from starlette.websockets import WebSocket

from teleop_core.relay.messages import OutboundMessage, encode_outbound

logger = logging.getLogger(__name__)

_channel_ids = itertools.count(1)


class Channel(ABC):
    """One bidirectional connection to a vehicle or an operator.

    ``send`` is fire-and-forget: it never blocks and never raises. Once the channel is
    closed it returns ``False`` and drops the message.

    ``vehicle_ids`` / ``operator_ids`` record every id the peer registered as, so the
    router can clean up all of its registry entries when the channel closes.
    """

    def __init__(self, name: str | None = None) -> None:
        self.name = name or f"ch-{next(_channel_ids)}"
        self.vehicle_ids: set[str] = set()
        self.operator_ids: set[str] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, message: OutboundMessage) -> bool:
        if self._closed:
            logger.debug("Dropping %s for closed channel %s", message.type, self.name)
            return False
        return self._deliver(message)

    def close(self) -> None:
        self._closed = True

    @abstractmethod
    def _deliver(self, message: OutboundMessage) -> bool: ...

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class WebSocketChannel(Channel):
    """Channel backed by a Starlette WebSocket.

    Outbound frames go through an unbounded queue drained by a writer task, so callers
    routing on behalf of other connections never await this peer's socket.
    """

    def __init__(self, websocket: WebSocket, name: str | None = None) -> None:
        super().__init__(name)
        self._websocket = websocket
        self._queue: asyncio.Queue[str | None] = asyncio.Queue()
        self._writer: asyncio.Task[None] | None = None

    def start(self) -> None:
        if self._writer is None:
            self._writer = asyncio.get_running_loop().create_task(
                self._drain(), name=f"teleop-writer-{self.name}"
            )

    def _deliver(self, message: OutboundMessage) -> bool:
        self._queue.put_nowait(encode_outbound(message))
        return True

    def close(self) -> None:
        if self._closed:
            return
        super().close()
        # Wake the writer so it exits; frames still queued are discarded.
        self._queue.put_nowait(None)

    async def _drain(self) -> None:
        while True:
            frame = await self._queue.get()
            if frame is None or self._closed:
                return
            try:
                await self._websocket.send_text(frame)
            except Exception as e:
                logger.warning("Send failed on %s; closing channel: %s", self.name, e)
                self._closed = True
                return
