from __future__ import annotations

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, Response, StreamingResponse
from starlette.background import BackgroundTask
from starlette.concurrency import run_in_threadpool

from .db import log_event, logger
from .registry import RouteEntry, RoutingRegistry
from .settings import settings


HOP_BY_HOP = {
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailers",
    "transfer-encoding",
    "upgrade",
}


def host_without_port(host: str) -> str:
    host = (host or "").strip()
    if host.startswith("["):
        end = host.find("]")
        return host[1:end] if end != -1 else host[1:]
    return host.split(":", 1)[0]


def service_from_host(host: str) -> str:
    """Routing key: the first label of the hostname. Everything after the first dot is ignored."""
    return host_without_port(host).split(".", 1)[0]


def _forward_headers(request: Request, entry: RouteEntry) -> dict[str, str]:
    headers: dict[str, str] = {}
    for k, v in request.headers.items():
        lk = k.lower()
        if lk in HOP_BY_HOP or lk == "content-length":
            continue
        headers[lk] = v

    original_host = request.headers.get("host", "")
    if settings.change_origin or not original_host:
        headers["host"] = f"{entry.address}:{entry.port}"

    client_ip = request.client.host if request.client else None
    if client_ip:
        prior = headers.get("x-forwarded-for")
        headers["x-forwarded-for"] = f"{prior}, {client_ip}" if prior else client_ip
    if original_host:
        headers.setdefault("x-forwarded-host", original_host)
    headers.setdefault("x-forwarded-proto", request.url.scheme)
    return headers


def _response_headers(resp: httpx.Response) -> list[tuple[bytes, bytes]]:
    # multi_items keeps repeated headers such as Set-Cookie apart.
    out: list[tuple[bytes, bytes]] = []
    for k, v in resp.headers.multi_items():
        lk = k.lower()
        if lk in HOP_BY_HOP or lk == "content-length":
            continue
        out.append((lk.encode("latin-1"), v.encode("latin-1")))
    return out


def create_proxy_app(registry: RoutingRegistry, http_client: httpx.AsyncClient | None = None) -> FastAPI:
    """Build the routing listener.

    ``http_client`` is used as-is when given (and left open); otherwise one is
    created for the app's lifetime with a bounded timeout.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = http_client is None
        app.state.http = http_client or httpx.AsyncClient(
            timeout=float(settings.gateway_timeout_s),
            follow_redirects=False,
        )
        try:
            yield
        finally:
            if owned:
                await app.state.http.aclose()

    # No docs/openapi routes: every path belongs to the backends.
    app = FastAPI(title="DSP Gateway", docs_url=None, redoc_url=None, openapi_url=None, lifespan=lifespan)

    async def proxy(request: Request) -> Response:
        host = request.headers.get("host", "")
        service = service_from_host(host)
        entry = registry.get(service)
        if entry is None:
            return PlainTextResponse("Container not found", status_code=404)

        raw_path = request.scope.get("raw_path")
        target_path = raw_path.split(b"?", 1)[0].decode("latin-1") if raw_path else request.url.path
        url = entry.target + target_path
        if request.url.query:
            url += f"?{request.url.query}"
        logger.debug("Forwarding %s %s → %s", request.method, host_without_port(host), entry.target)

        client: httpx.AsyncClient = request.app.state.http
        try:
            upstream = client.build_request(
                request.method,
                url,
                headers=_forward_headers(request, entry),
                content=await request.body(),
            )
            resp = await client.send(upstream, stream=True)
        except httpx.HTTPError as e:
            # The event log writes to sqlite; keep it off the event loop.
            await run_in_threadpool(
                log_event,
                "ERROR",
                f"Proxy error for {service} ({entry.target}): {type(e).__name__}: {e}",
                service_name=service,
            )
            return PlainTextResponse("Proxy failed", status_code=500)

        response = StreamingResponse(
            resp.aiter_raw(),
            status_code=resp.status_code,
            background=BackgroundTask(resp.aclose),
        )
        response.raw_headers.extend(_response_headers(resp))
        return response

    # A plain route with no method list: WebDAV and other extension methods are proxied too.
    app.router.add_route("/{path:path}", proxy, include_in_schema=False)

    return app
