from __future__ import annotations

from teleop_core.relay.channel import Channel, WebSocketChannel
from teleop_core.relay.messages import InvalidMessageError, decode_inbound, encode_outbound
from teleop_core.relay.registry import (
    OperatorEntry,
    OperatorRegistry,
    VehicleEntry,
    VehicleRegistry,
)
from teleop_core.relay.router import Router

__all__ = [
    "Channel",
    "InvalidMessageError",
    "OperatorEntry",
    "OperatorRegistry",
    "Router",
    "VehicleEntry",
    "VehicleRegistry",
    "WebSocketChannel",
    "decode_inbound",
    "encode_outbound",
]
