"""Routing between vehicles and operators.

The router owns no state besides the two registries. Every inbound message is handled
as a single registry operation under one lock, which keeps ``select_car``'s conflict
scan and bind atomic with respect to every other handler.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any

from teleop_core.relay.channel import Channel
from teleop_core.relay.messages import (
    CAR_IN_USE,
    CAR_UNAVAILABLE,
    VEHICLE_DISCONNECTED,
    AnalogCommand,
    AnalogCommandForward,
    CarSelected,
    Command,
    CommandForward,
    ErrorMessage,
    InboundMessage,
    InvalidMessageError,
    OperatorRegistered,
    RegisterCar,
    RegisterUser,
    SelectCar,
    Status,
    StatusForward,
    VehicleInfo,
    VehicleRegistered,
    decode_inbound,
)
from teleop_core.relay.registry import (
    OperatorEntry,
    OperatorRegistry,
    VehicleEntry,
    VehicleRegistry,
)

logger = logging.getLogger(__name__)


class Router:
    def __init__(
        self,
        vehicles: VehicleRegistry,
        operators: OperatorRegistry,
        *,
        unbind_on_vehicle_disconnect: bool = False,
    ) -> None:
        self.vehicles = vehicles
        self.operators = operators
        self.unbind_on_vehicle_disconnect = unbind_on_vehicle_disconnect
        self._lock = threading.RLock()
        self._handlers: dict[str, Callable[[Channel, Any], None]] = {
            "register_car": self._register_car,
            "register_user": self._register_user,
            "select_car": self._select_car,
            "command": self._command,
            "analog_command": self._analog_command,
            "status": self._status,
        }

    def handle_raw(self, channel: Channel, raw: str | bytes) -> None:
        """Decode and route one inbound frame. Never raises."""

        try:
            message = decode_inbound(raw)
        except InvalidMessageError as e:
            logger.warning("Ignoring invalid message from %s: %s", channel.name, e)
            return
        self.dispatch(channel, message)

    def dispatch(self, channel: Channel, message: InboundMessage) -> None:
        handler = self._handlers[message.type]
        try:
            with self._lock:
                handler(channel, message)
        except Exception:
            logger.exception("Failed to handle %s from %s", message.type, channel.name)

    def handle_disconnect(self, channel: Channel) -> None:
        with self._lock:
            for vehicle_id in sorted(channel.vehicle_ids):
                self._drop_vehicle(channel, vehicle_id)
            for operator_id in sorted(channel.operator_ids):
                self._drop_operator(channel, operator_id)
            channel.vehicle_ids.clear()
            channel.operator_ids.clear()
        channel.close()

    def counts(self) -> tuple[int, int]:
        with self._lock:
            return len(self.vehicles), len(self.operators)

    def snapshot(self) -> list[dict[str, Any]]:
        """Connected vehicles with their stream locator and current operator."""

        with self._lock:
            out: list[dict[str, Any]] = []
            for vehicle in self.vehicles.snapshot():
                holder = self.operators.find_bound(vehicle.vehicle_id)
                out.append(
                    {
                        "car_id": vehicle.vehicle_id,
                        "stream_url": vehicle.stream_url,
                        "operator_id": holder.operator_id if holder is not None else None,
                    }
                )
            return out

    # Handlers. Called with the lock held.

    def _register_car(self, channel: Channel, message: RegisterCar) -> None:
        self.vehicles.register(
            VehicleEntry(
                vehicle_id=message.car_id,
                stream_url=message.stream_url,
                channel=channel,
            )
        )
        channel.vehicle_ids.add(message.car_id)
        logger.info("Vehicle registered: %s (%s)", message.car_id, message.stream_url)
        logger.info("Connected vehicles: %d", len(self.vehicles))
        channel.send(VehicleRegistered(car_id=message.car_id))

    def _register_user(self, channel: Channel, message: RegisterUser) -> None:
        self.operators.register(OperatorEntry(operator_id=message.user_id, channel=channel))
        channel.operator_ids.add(message.user_id)
        cars = [
            VehicleInfo(car_id=v.vehicle_id, stream_url=v.stream_url)
            for v in self.vehicles.snapshot()
        ]
        logger.info("Operator registered: %s", message.user_id)
        logger.info("Connected operators: %d", len(self.operators))
        channel.send(OperatorRegistered(user_id=message.user_id, cars=cars))

    def _select_car(self, channel: Channel, message: SelectCar) -> None:
        if message.car_id not in self.vehicles:
            channel.send(ErrorMessage(message=CAR_UNAVAILABLE))
            return

        # Re-scan at selection time; this is the only place exclusivity is enforced.
        if self.operators.find_bound(message.car_id) is not None:
            channel.send(ErrorMessage(message=CAR_IN_USE))
            return

        operator = self.operators.get(message.user_id)
        if operator is None:
            logger.info("Selection by unregistered operator %s", message.user_id)
            return

        operator.bound_vehicle_id = message.car_id
        logger.info("Operator %s took vehicle %s", message.user_id, message.car_id)
        channel.send(CarSelected(car_id=message.car_id))

    def _command(self, channel: Channel, message: Command) -> None:
        vehicle = self._resolve_target(message.user_id)
        if vehicle is None:
            return
        vehicle.channel.send(CommandForward(command=message.command))
        logger.info(
            "Command sent to %s: %s (operator: %s)",
            vehicle.vehicle_id,
            message.command,
            message.user_id,
        )

    def _analog_command(self, channel: Channel, message: AnalogCommand) -> None:
        vehicle = self._resolve_target(message.user_id)
        if vehicle is None:
            return
        vehicle.channel.send(AnalogCommandForward(x=message.x, y=message.y))
        logger.info(
            "Analog command sent to %s: x=%.2f y=%.2f (operator: %s)",
            vehicle.vehicle_id,
            message.x,
            message.y,
            message.user_id,
        )

    def _status(self, channel: Channel, message: Status) -> None:
        operator = self.operators.find_bound(message.car_id)
        if operator is None:
            return
        operator.channel.send(StatusForward(car_id=message.car_id, status=message.status))

    def _resolve_target(self, operator_id: str) -> VehicleEntry | None:
        """Find the vehicle an operator's command should go to.

        Reports a vanished vehicle back to the operator; an unknown or unbound operator is
        only logged.
        """

        operator = self.operators.get(operator_id)
        if operator is None:
            logger.info("Command from unregistered operator %s", operator_id)
            return None

        vehicle_id = operator.bound_vehicle_id
        if vehicle_id is None:
            logger.info("Operator %s sent a command without a vehicle", operator_id)
            return None

        vehicle = self.vehicles.get(vehicle_id)
        if vehicle is None:
            logger.info("Vehicle %s is no longer connected (operator: %s)", vehicle_id, operator_id)
            operator.channel.send(ErrorMessage(message=VEHICLE_DISCONNECTED))
            return None
        return vehicle

    def _drop_vehicle(self, channel: Channel, vehicle_id: str) -> None:
        removed = self.vehicles.remove(vehicle_id, channel=channel)
        if removed is None:
            return
        logger.info("Vehicle disconnected: %s", vehicle_id)
        logger.info("Connected vehicles: %d", len(self.vehicles))

        if not self.unbind_on_vehicle_disconnect:
            return
        for operator in self.operators.bound_to(vehicle_id):
            operator.bound_vehicle_id = None
            operator.channel.send(ErrorMessage(message=VEHICLE_DISCONNECTED))
            logger.info("Released %s from operator %s", vehicle_id, operator.operator_id)

    def _drop_operator(self, channel: Channel, operator_id: str) -> None:
        removed = self.operators.remove(operator_id, channel=channel)
        if removed is None:
            return
        logger.info("Operator disconnected: %s", operator_id)
        logger.info("Connected operators: %d", len(self.operators))
