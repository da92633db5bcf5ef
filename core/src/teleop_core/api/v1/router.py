from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from teleop_core import __version__
from teleop_core.api.models import ApiResponse, ok
from teleop_core.relay.router import Router

router = APIRouter(prefix="/v1", tags=["v1"])


class SystemInfo(BaseModel):
    version: str
    teleop_home: str
    connected_vehicles: int
    connected_operators: int


class VehicleSummary(BaseModel):
    car_id: str
    stream_url: str
    operator_id: str | None = None


def _get_relay(request: Request) -> Router:
    relay = getattr(request.app.state, "relay_router", None)
    if relay is None:
        raise HTTPException(status_code=500, detail="Relay not initialized")
    return relay


@router.get("/ping", response_model=ApiResponse[dict[str, bool]])
async def ping() -> ApiResponse[dict[str, bool]]:
    return ok({"pong": True})


@router.get("/system/info", response_model=ApiResponse[SystemInfo])
async def system_info(request: Request) -> ApiResponse[SystemInfo]:
    home = getattr(request.app.state, "teleop_home", None)
    vehicles, operators = _get_relay(request).counts()

    info = SystemInfo(
        version=__version__,
        teleop_home=str(home) if home is not None else "",
        connected_vehicles=vehicles,
        connected_operators=operators,
    )
    return ok(info)


@router.get("/vehicles", response_model=ApiResponse[list[VehicleSummary]])
async def list_vehicles(request: Request) -> ApiResponse[list[VehicleSummary]]:
    rows = _get_relay(request).snapshot()
    return ok([VehicleSummary(**row) for row in rows])
