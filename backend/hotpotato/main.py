"""FastAPI application entrypoint."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi import HTTPException
from fastapi.middleware.cors import CORSMiddleware

from hotpotato.api.errors import handle_http_exception
from hotpotato.api.routers.rooms import router as rooms_router
from hotpotato.core.config import Settings
from hotpotato.core.config import load_settings
from hotpotato.runtime import GameRuntime
from hotpotato.ws.routers import router as ws_router


def create_app(settings: Settings | None = None, *, runtime: GameRuntime | None = None) -> FastAPI:
    """Build an application with its own runtime, so tests never share rooms."""
    if settings is None:
        settings = load_settings()
    if runtime is None:
        runtime = GameRuntime(settings)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        await runtime.start()
        try:
            yield
        finally:
            await runtime.shutdown()

    application = FastAPI(title="hotpotato", lifespan=lifespan)
    application.state.settings = settings
    application.state.runtime = runtime
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.add_exception_handler(HTTPException, handle_http_exception)
    application.include_router(rooms_router)
    application.include_router(ws_router)
    return application


app = create_app()


__all__ = [
    "app",
    "create_app",
]
