from __future__ import annotations

from typing import Any, Iterator

import docker
from docker.errors import DockerException


class DockerRuntime:
    """Thin adapter over the Docker SDK.

    Everything the proxy needs from the daemon goes through here so the
    pipeline and the management API can be driven by a fake in tests.
    """

    def __init__(self, client: docker.DockerClient | None = None) -> None:
        self._client = client

    @property
    def client(self) -> docker.DockerClient:
        if self._client is None:
            self._client = docker.from_env()
        return self._client

    def available(self) -> bool:
        try:
            self.client.ping()
            return True
        except DockerException:
            return False

    def events(self) -> Iterator[dict[str, Any]]:
        """Decoded daemon event stream, narrowed to container starts; blocks between events."""
        return self.client.events(decode=True, filters={"type": "container", "event": "start"})

    def inspect(self, container_id: str) -> dict[str, Any]:
        return self.client.api.inspect_container(container_id)

    def image_exists(self, image: str, tag: str = "latest") -> bool:
        ref = f"{image}:{tag}"
        for img in self.client.api.images():
            if ref in (img.get("RepoTags") or []):
                return True
        return False

    def pull(self, image: str, tag: str = "latest") -> None:
        self.client.images.pull(image, tag=tag)

    def create_and_start(self, image: str, tag: str = "latest") -> str:
        """Create and start a container; returns the daemon-assigned name (with leading '/')."""
        container = self.client.containers.create(
            f"{image}:{tag}",
            tty=False,
            auto_remove=True,
        )
        container.start()
        return self.inspect(container.id)["Name"]
