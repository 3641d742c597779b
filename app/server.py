"""Process entry point: serve the API over HTTP and, if TLS is configured, HTTPS.

Usage:
    checks-api                      # staging ports 3000/3001
    APP_ENV=production checks-api   # production ports 5000/5001
"""
from __future__ import annotations

import asyncio

from fastapi import FastAPI
from uvicorn import Config, Server

from .config import Settings, load_settings
from .logging_conf import get_logger, setup_logging
from .main import create_app

logger = get_logger("server")


def build_servers(app: FastAPI, settings: Settings) -> list[Server]:
    """One uvicorn server per listener; only the first runs the app lifespan."""
    servers = [
        Server(
            Config(
                app=app,
                host=settings.host,
                port=settings.http_port,
                log_config=None,
                lifespan="on",
            )
        )
    ]
    if settings.https_enabled:
        servers.append(
            Server(
                Config(
                    app=app,
                    host=settings.host,
                    port=settings.https_port,
                    ssl_certfile=str(settings.tls_cert_file),
                    ssl_keyfile=str(settings.tls_key_file),
                    log_config=None,
                    lifespan="off",
                )
            )
        )
    else:
        logger.warning(
            "https.disabled",
            extra={"event": "https_disabled", "reason": "TLS_CERT_FILE/TLS_KEY_FILE not set"},
        )
    return servers


async def serve(settings: Settings) -> None:
    app = create_app(settings)
    servers = build_servers(app, settings)
    for srv in servers:
        logger.info(
            "listen",
            extra={
                "event": "listen",
                "env": settings.env_name,
                "host": srv.config.host,
                "port": srv.config.port,
                "tls": srv.config.ssl_certfile is not None,
            },
        )
    await asyncio.gather(*(srv.serve() for srv in servers))


def main() -> None:
    setup_logging()
    asyncio.run(serve(load_settings()))


if __name__ == "__main__":
    main()
