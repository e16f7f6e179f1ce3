from __future__ import annotations

from dataclasses import dataclass
from threading import Lock


@dataclass(frozen=True)
class RouteEntry:
    service: str
    address: str
    port: int

    @property
    def target(self) -> str:
        return f"http://{self.address}:{self.port}"


class RoutingRegistry:
    """In-memory service name -> backend map shared by the pipeline and the gateway.

    One entry per service name; a later ``put`` replaces the earlier one.
    Entries are never evicted and nothing is persisted.
    """

    def __init__(self) -> None:
        self.lock = Lock()
        self._routes: dict[str, RouteEntry] = {}

    def put(self, service: str, entry: RouteEntry) -> None:
        with self.lock:
            self._routes[service] = entry

    def get(self, service: str) -> RouteEntry | None:
        with self.lock:
            return self._routes.get(service)

    def snapshot(self) -> list[RouteEntry]:
        with self.lock:
            return sorted(self._routes.values(), key=lambda e: e.service)

    def __contains__(self, service: object) -> bool:
        with self.lock:
            return service in self._routes

    def __len__(self) -> int:
        with self.lock:
            return len(self._routes)
