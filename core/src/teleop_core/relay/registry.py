from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from teleop_core.relay.channel import Channel


@dataclass
class VehicleEntry:
    vehicle_id: str
    stream_url: str
    channel: Channel


@dataclass
class OperatorEntry:
    operator_id: str
    channel: Channel
    # Weak reference by id; the vehicle may have disconnected since selection.
    bound_vehicle_id: str | None = None


class VehicleRegistry:
    """Connected vehicles keyed by vehicle id.

    Not synchronized on its own; the router serializes every access.
    """

    def __init__(self) -> None:
        self._entries: dict[str, VehicleEntry] = {}

    def register(self, entry: VehicleEntry) -> VehicleEntry | None:
        """Insert or overwrite; returns the replaced entry, if any."""

        previous = self._entries.get(entry.vehicle_id)
        self._entries[entry.vehicle_id] = entry
        return previous

    def get(self, vehicle_id: str) -> VehicleEntry | None:
        return self._entries.get(vehicle_id)

    def remove(self, vehicle_id: str, *, channel: Channel | None = None) -> VehicleEntry | None:
        """Remove an entry.

        With ``channel`` given, only remove it while that channel still owns the id.
        """

        entry = self._entries.get(vehicle_id)
        if entry is None:
            return None
        if channel is not None and entry.channel is not channel:
            return None
        del self._entries[vehicle_id]
        return entry

    def snapshot(self) -> list[VehicleEntry]:
        return list(self._entries.values())

    def __contains__(self, vehicle_id: object) -> bool:
        return vehicle_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[VehicleEntry]:
        return iter(self.snapshot())


class OperatorRegistry:
    """Connected operators keyed by operator id, with their vehicle bindings."""

    def __init__(self) -> None:
        self._entries: dict[str, OperatorEntry] = {}

    def register(self, entry: OperatorEntry) -> OperatorEntry | None:
        previous = self._entries.get(entry.operator_id)
        self._entries[entry.operator_id] = entry
        return previous

    def get(self, operator_id: str) -> OperatorEntry | None:
        return self._entries.get(operator_id)

    def remove(self, operator_id: str, *, channel: Channel | None = None) -> OperatorEntry | None:
        entry = self._entries.get(operator_id)
        if entry is None:
            return None
        if channel is not None and entry.channel is not channel:
            return None
        del self._entries[operator_id]
        return entry

    def find_bound(self, vehicle_id: str) -> OperatorEntry | None:
        """Scan for the operator currently holding ``vehicle_id``."""

        for entry in self._entries.values():
            if entry.bound_vehicle_id == vehicle_id:
                return entry
        return None

    def bound_to(self, vehicle_id: str) -> list[OperatorEntry]:
        return [e for e in self._entries.values() if e.bound_vehicle_id == vehicle_id]

    def snapshot(self) -> list[OperatorEntry]:
        return list(self._entries.values())

    def __contains__(self, operator_id: object) -> bool:
        return operator_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[OperatorEntry]:
        return iter(self.snapshot())
