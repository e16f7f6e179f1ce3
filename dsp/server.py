from __future__ import annotations

import logging
from threading import Thread

import uvicorn

from . import db
from .api import create_api_app
from .docker_ops import DockerRuntime
from .gateway import create_proxy_app
from .registration import RegistrationPipeline
from .registry import RoutingRegistry
from .settings import settings


def setup_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def main() -> int:
    """Run the pipeline, the management API and the routing listener in one process.

    The routing listener owns the main thread (and so signal handling); the
    management API gets its own thread and event loop.
    """
    setup_logging()
    db.init_db()

    registry = RoutingRegistry()
    runtime = DockerRuntime()
    pipeline = RegistrationPipeline(registry, runtime)

    api_server = uvicorn.Server(
        uvicorn.Config(
            create_api_app(runtime, registry),
            host=settings.api_host,
            port=settings.api_port,
            log_level=settings.log_level.lower(),
        )
    )
    proxy_server = uvicorn.Server(
        uvicorn.Config(
            create_proxy_app(registry),
            host=settings.proxy_host,
            port=settings.proxy_port,
            log_level=settings.log_level.lower(),
        )
    )

    pipeline.start()
    api_thread = Thread(target=api_server.run, name="dsp-api", daemon=True)
    api_thread.start()
    db.log_event("INFO", f"Management API is listening on port {settings.api_port}")
    db.log_event("INFO", f"Reverse proxy is listening on port {settings.proxy_port}")

    try:
        proxy_server.run()
    finally:
        pipeline.stop()
        api_server.should_exit = True
        api_thread.join(timeout=5)
    return 0
