from __future__ import annotations

from pydantic import BaseModel, Field


class CreateContainerRequest(BaseModel):
    # Checked in the handler: a missing image is a 400, not a validation error.
    image: str | None = Field(None, description="Docker image name, without tag")
    tag: str = Field("latest", description="Image tag")


class CreateContainerResponse(BaseModel):
    status: str = "success"
    container: str = Field(..., description="Hostname the container will be routable under")


class ErrorResponse(BaseModel):
    status: str = "error"
    message: str


class RouteOut(BaseModel):
    service: str
    address: str
    port: int
    target: str
