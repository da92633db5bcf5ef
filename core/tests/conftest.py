from __future__ import annotations

from typing import Any

import pytest

from teleop_core.relay.channel import Channel
from teleop_core.relay.messages import OutboundMessage
from teleop_core.relay.registry import OperatorRegistry, VehicleRegistry
from teleop_core.relay.router import Router


class RecordingChannel(Channel):
    """In-memory channel that keeps every delivered frame as a wire dict."""

    def __init__(self, name: str | None = None) -> None:
        super().__init__(name)
        self.sent: list[dict[str, Any]] = []

    def _deliver(self, message: OutboundMessage) -> bool:
        self.sent.append(message.model_dump(mode="json", by_alias=True))
        return True

    def last(self) -> dict[str, Any]:
        assert self.sent, f"{self.name} received nothing"
        return self.sent[-1]


@pytest.fixture
def make_channel():
    def _make(name: str | None = None) -> RecordingChannel:
        return RecordingChannel(name)

    return _make


@pytest.fixture
def relay() -> Router:
    return Router(VehicleRegistry(), OperatorRegistry())
