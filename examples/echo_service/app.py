from __future__ import annotations

import os

from fastapi import FastAPI, Request


NAME = os.getenv("ECHO_NAME", "echo")

app = FastAPI(title=f"Echo Service {NAME}", docs_url=None, redoc_url=None, openapi_url=None)


@app.api_route("/{path:path}", methods=["GET", "POST", "PUT", "DELETE"])
async def echo(request: Request, path: str) -> dict:
    # Reports what the proxy actually delivered.
    body = await request.body()
    return {
        "name": NAME,
        "method": request.method,
        "path": request.url.path,
        "query": request.url.query,
        "host": request.headers.get("host"),
        "forwarded_for": request.headers.get("x-forwarded-for"),
        "forwarded_host": request.headers.get("x-forwarded-host"),
        "body": body.decode("utf-8", errors="replace"),
    }
