"""Run the session server: python -m hotpotato."""

from __future__ import annotations

import logging

import uvicorn

from hotpotato.core.config import load_settings


def main() -> None:
    settings = load_settings()
    logging.basicConfig(
        level=settings.hotpotato_log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "hotpotato.main:app",
        host=settings.hotpotato_app_host,
        port=settings.hotpotato_app_port,
        log_level=settings.hotpotato_log_level.lower(),
        ws="websockets",
    )


if __name__ == "__main__":
    main()
