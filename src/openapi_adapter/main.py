"""CLI entry point for the OpenAPI adapter."""

from __future__ import annotations

import asyncio
import logging
import os
import sys

import uvicorn

from .config import Settings, get_settings
from .errors import AdapterError, ConfigError
from .logging import configure_logging
from .server import HTTP_TRANSPORTS, PROGRAM_DIR, build_http_app, build_server

logger = logging.getLogger(__name__)


def _log_startup(settings: Settings) -> None:
    logger.info(
        "Starting with configuration: working directory=%s program location=%s "
        "OpenAPI file=%s debug=%s transport=%s",
        os.getcwd(),
        PROGRAM_DIR,
        settings.openapi_file,
        settings.debug,
        settings.adapter_transport,
    )


async def _run(settings: Settings) -> None:
    transport = settings.adapter_transport.lower()
    if transport != "stdio" and transport not in HTTP_TRANSPORTS:
        raise ConfigError(
            f"Unsupported ADAPTER_TRANSPORT {settings.adapter_transport!r}, expected stdio or "
            f"one of {sorted(HTTP_TRANSPORTS)}"
        )
    mcp, _ = build_server(settings)

    if transport in HTTP_TRANSPORTS:
        app = build_http_app(mcp, settings)
        config = uvicorn.Config(app, host=settings.adapter_host, port=settings.adapter_port)
        server = uvicorn.Server(config)
        await server.serve()
        return
    await mcp.run_stdio_async()


def main() -> None:
    settings = get_settings()
    configure_logging(settings)
    _log_startup(settings)
    try:
        asyncio.run(_run(settings))
    except AdapterError as exc:
        logger.error("FATAL ERROR: %s", exc)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Received interrupt, shutting down")


if __name__ == "__main__":
    main()
