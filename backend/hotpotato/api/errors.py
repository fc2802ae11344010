"""HTTP error bodies: every API failure answers {code, message, detail}."""

from __future__ import annotations

from typing import Any
from typing import NoReturn

from fastapi import HTTPException
from fastapi import Request
from fastapi.responses import JSONResponse

_ERROR_KEYS = frozenset({"code", "message", "detail"})


def api_error(*, code: str, message: str, detail: dict[str, Any] | None = None) -> dict[str, Any]:
    return {"code": code, "message": message, "detail": detail or {}}


def raise_api_error(
    *,
    status_code: int,
    code: str,
    message: str,
    detail: dict[str, Any] | None = None,
) -> NoReturn:
    raise HTTPException(status_code=status_code, detail=api_error(code=code, message=message, detail=detail))


async def handle_http_exception(_: Request, exc: HTTPException) -> JSONResponse:
    """Pass structured details through; wrap plain-string ones as HTTP_ERROR."""
    body = exc.detail
    if not (isinstance(body, dict) and _ERROR_KEYS <= body.keys()):
        body = api_error(code="HTTP_ERROR", message=str(exc.detail))
    return JSONResponse(status_code=exc.status_code, content=body, headers=exc.headers)


__all__ = [
    "api_error",
    "handle_http_exception",
    "raise_api_error",
]
