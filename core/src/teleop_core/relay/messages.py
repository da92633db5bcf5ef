"""Wire messages exchanged with vehicles and operators.

Every frame is a JSON object with a ``type`` discriminator. Field names on the wire are
camelCase (``carId``, ``streamUrl``, ``userId``); Python attributes are snake_case.
Anything outside the known inbound kinds is rejected here, at the boundary, with
:class:`InvalidMessageError`.
"""

from __future__ import annotations

import json
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

CAR_UNAVAILABLE = "car unavailable"
CAR_IN_USE = "car already in use"
VEHICLE_DISCONNECTED = "vehicle disconnected"


class InvalidMessageError(ValueError):
    """Raised when an inbound frame cannot be parsed into a known message."""


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


# Inbound: vehicle -> relay


class RegisterCar(_WireModel):
    type: Literal["register_car"] = "register_car"
    car_id: str
    stream_url: str


class Status(_WireModel):
    type: Literal["status"] = "status"
    car_id: str
    status: Any = None


# Inbound: operator -> relay


class RegisterUser(_WireModel):
    type: Literal["register_user"] = "register_user"
    user_id: str


class SelectCar(_WireModel):
    type: Literal["select_car"] = "select_car"
    user_id: str
    car_id: str


class Command(_WireModel):
    type: Literal["command"] = "command"
    user_id: str
    command: str


class AnalogCommand(_WireModel):
    type: Literal["analog_command"] = "analog_command"
    user_id: str
    x: float
    y: float


InboundMessage = Annotated[
    RegisterCar | RegisterUser | SelectCar | Command | AnalogCommand | Status,
    Field(discriminator="type"),
]

_inbound_adapter: TypeAdapter[InboundMessage] = TypeAdapter(InboundMessage)


# Outbound: relay -> peer


class VehicleInfo(_WireModel):
    car_id: str
    stream_url: str


class VehicleRegistered(_WireModel):
    type: Literal["registered"] = "registered"
    car_id: str


class OperatorRegistered(_WireModel):
    type: Literal["registered"] = "registered"
    user_id: str
    cars: list[VehicleInfo] = Field(default_factory=list)


class CarSelected(_WireModel):
    type: Literal["car_selected"] = "car_selected"
    car_id: str


class ErrorMessage(_WireModel):
    type: Literal["error"] = "error"
    message: str


class CommandForward(_WireModel):
    type: Literal["command"] = "command"
    command: str


class AnalogCommandForward(_WireModel):
    type: Literal["analog_command"] = "analog_command"
    x: float
    y: float


class StatusForward(_WireModel):
    type: Literal["status"] = "status"
    car_id: str
    status: Any = None


OutboundMessage = (
    VehicleRegistered
    | OperatorRegistered
    | CarSelected
    | ErrorMessage
    | CommandForward
    | AnalogCommandForward
    | StatusForward
)


def decode_inbound(raw: str | bytes) -> InboundMessage:
    """Parse one raw frame into a typed inbound message."""

    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidMessageError(f"Frame is not valid UTF-8: {e}") from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise InvalidMessageError(f"Frame is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise InvalidMessageError("Frame must be a JSON object")

    try:
        return _inbound_adapter.validate_python(data)
    except ValidationError as e:
        raise InvalidMessageError(
            f"Unrecognized or malformed {data.get('type')!r} message: "
            f"{e.error_count()} validation error(s)"
        ) from e


def encode_outbound(message: OutboundMessage) -> str:
    return message.model_dump_json(by_alias=True)
