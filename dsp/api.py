from __future__ import annotations

from typing import Any, Protocol

from fastapi import FastAPI, Query
from fastapi.responses import JSONResponse

from . import db
from .api_models import CreateContainerRequest, CreateContainerResponse, ErrorResponse, RouteOut
from .registration import strip_name
from .registry import RoutingRegistry
from .settings import settings


class ContainerRuntime(Protocol):
    def available(self) -> bool: ...

    def image_exists(self, image: str, tag: str = "latest") -> bool: ...

    def pull(self, image: str, tag: str = "latest") -> None: ...

    def create_and_start(self, image: str, tag: str = "latest") -> str: ...


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(message=message).model_dump())


def create_api_app(runtime: ContainerRuntime, registry: RoutingRegistry) -> FastAPI:
    app = FastAPI(title="DSP Management API")

    # Sync handler: runs in the threadpool, off the event loop.
    @app.post("/containers", response_model=CreateContainerResponse, responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}})
    def create_container(req: CreateContainerRequest | None = None) -> Any:
        if req is None or not req.image:
            return _error(400, "Image is required")

        image, tag = req.image, req.tag or "latest"
        ref = f"{image}:{tag}"
        try:
            if not runtime.image_exists(image, tag):
                db.log_event("INFO", f"Pulling image: {ref}")
                runtime.pull(image, tag)
            name = strip_name(runtime.create_and_start(image, tag))
        except Exception as e:
            db.log_event("ERROR", f"Error creating container from {ref}: {type(e).__name__}: {e}")
            return _error(500, str(e))

        db.log_event("INFO", f"Started container {name} from image {ref}", service_name=name)
        return CreateContainerResponse(container=f"{name}.{settings.domain_suffix}")

    @app.get("/routes", response_model=list[RouteOut])
    def list_routes() -> list[RouteOut]:
        return [RouteOut(service=e.service, address=e.address, port=e.port, target=e.target) for e in registry.snapshot()]

    @app.get("/events")
    def events(limit: int = Query(100, ge=1, le=1000)) -> list[dict[str, Any]]:
        return db.latest_events(limit)

    @app.get("/health")
    def health() -> dict[str, Any]:
        return {"status": "ok", "docker": runtime.available(), "routes": len(registry)}

    return app
