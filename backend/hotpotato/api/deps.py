"""Dependency helpers shared by API routers."""

from __future__ import annotations

from fastapi import Request

from hotpotato.runtime import GameRuntime


def get_runtime(request: Request) -> GameRuntime:
    """Return the runtime owned by the serving application."""
    return request.app.state.runtime
