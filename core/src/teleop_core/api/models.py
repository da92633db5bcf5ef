from __future__ import annotations

from typing import Any, Generic, TypeVar

from fastapi.responses import JSONResponse
from pydantic import BaseModel

_STATUS_CODES: dict[int, str] = {
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    422: "validation_error",
}


class ApiError(BaseModel):
    code: str
    message: str
    details: Any | None = None


T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    ok: bool
    data: T | None = None
    error: ApiError | None = None


def ok(data: T) -> ApiResponse[T]:
    return ApiResponse(ok=True, data=data)


def fail(*, code: str, message: str, details: Any | None = None) -> ApiResponse[None]:
    return ApiResponse(ok=False, error=ApiError(code=code, message=message, details=details))


def error_code_for_status(status_code: int) -> str:
    code = _STATUS_CODES.get(status_code)
    if code is not None:
        return code
    if 400 <= status_code < 500:
        return "client_error"
    return "server_error"


def error_response(
    status_code: int, message: str, *, code: str | None = None, details: Any | None = None
) -> JSONResponse:
    body = fail(
        code=code or error_code_for_status(status_code),
        message=message,
        details=details,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))
