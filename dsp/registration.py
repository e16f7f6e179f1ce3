from __future__ import annotations

import queue
from threading import Event, Thread
from typing import Any, Iterable, Protocol

import requests
from docker.errors import DockerException

from .db import log_event
from .registry import RouteEntry, RoutingRegistry
from .settings import settings


class EventRuntime(Protocol):
    def events(self) -> Iterable[Any]: ...

    def inspect(self, container_id: str) -> dict[str, Any]: ...


def parse_event(record: Any) -> dict[str, Any] | None:
    """Accept one decoded record from the daemon's event stream.

    The SDK decodes the stream; anything that is not a JSON object is logged and dropped.
    """
    if isinstance(record, dict):
        return record
    log_event("WARN", f"Discarding non-object event: {record!r}")
    return None


def event_action(event: dict[str, Any]) -> str | None:
    # Older daemons only send "status".
    return event.get("Action") or event.get("status")


def event_container_id(event: dict[str, Any]) -> str | None:
    actor = event.get("Actor") or {}
    return event.get("id") or actor.get("ID")


def is_start_event(event: dict[str, Any]) -> bool:
    return event.get("Type") == "container" and event_action(event) == "start"


def strip_name(name: str) -> str:
    """Drop a single leading '/' from a Docker container name."""
    return name[1:] if name.startswith("/") else name


def derive_address(attrs: dict[str, Any], network: str = "bridge") -> str | None:
    """Backend IP: the bridge network's address, else the legacy top-level one."""
    net_settings = attrs.get("NetworkSettings") or {}
    networks = net_settings.get("Networks") or {}
    bridge = networks.get(network) or {}
    return bridge.get("IPAddress") or net_settings.get("IPAddress") or None


def derive_port(attrs: dict[str, Any]) -> int | None:
    """Backend port: the first declared exposed port, only if it is TCP.

    Later exposed ports are never considered, even when the first is UDP.
    """
    config = attrs.get("Config") or {}
    exposed = list(config.get("ExposedPorts") or {})
    if not exposed:
        return None
    port, _, proto = exposed[0].partition("/")
    if proto != "tcp" or not port.isdigit():
        return None
    return int(port)


def derive_entry(attrs: dict[str, Any], network: str = "bridge") -> RouteEntry | None:
    service = strip_name(attrs.get("Name") or "")
    address = derive_address(attrs, network)
    port = derive_port(attrs)
    if not service or not address or port is None:
        return None
    return RouteEntry(service=service, address=address, port=port)


class RegistrationPipeline:
    """Turns container start events into registry entries.

    A feeder thread copies the daemon's event stream into a queue; a single
    consumer thread drains it in order, so registrations follow event order.
    No single event (malformed, vanished container, unroutable) stops either loop.
    """

    def __init__(
        self,
        registry: RoutingRegistry,
        runtime: EventRuntime,
        network: str | None = None,
        retry_s: float | None = None,
    ):
        self.registry = registry
        self.runtime = runtime
        self.network = network or settings.bridge_network
        self.retry_s = max(0.0, float(settings.event_retry_s if retry_s is None else retry_s))
        self.queue: queue.Queue[Any] = queue.Queue()
        self._stop = Event()
        self._feeder: Thread | None = None
        self._consumer: Thread | None = None

    def start(self) -> None:
        if self._consumer and self._consumer.is_alive():
            return
        self._stop.clear()
        self._consumer = Thread(target=self._consume_loop, name="dsp-registration", daemon=True)
        self._feeder = Thread(target=self._feed_loop, name="dsp-events", daemon=True)
        self._consumer.start()
        self._feeder.start()

    def stop(self, wait: float = 0) -> None:
        """Signal both loops to exit; optionally wait up to ``wait`` seconds for each.

        The feeder may be parked inside a blocking daemon read, so it is not
        guaranteed to exit before the next event arrives.
        """
        self._stop.set()
        if wait > 0:
            for t in (self._feeder, self._consumer):
                if t is not None:
                    t.join(timeout=wait)

    def submit(self, record: Any) -> None:
        self.queue.put(record)

    def join(self) -> None:
        """Block until every submitted record has been processed."""
        self.queue.join()

    def _feed_loop(self) -> None:
        log_event("INFO", "Listening for Docker events")
        while not self._stop.is_set():
            try:
                for record in self.runtime.events():
                    if self._stop.is_set():
                        return
                    self.submit(record)
                log_event("WARN", "Docker event stream ended")
            except Exception as e:
                # Includes docker.errors.StreamParseError from the SDK's decoder.
                log_event("ERROR", f"Docker event stream failed: {type(e).__name__}: {e}")
            self._stop.wait(self.retry_s)

    def _consume_loop(self) -> None:
        while not self._stop.is_set():
            try:
                record = self.queue.get(timeout=0.5)
            except queue.Empty:
                continue
            try:
                self.handle_record(record)
            except Exception as e:
                log_event("ERROR", f"Event handling failed: {type(e).__name__}: {e}")
            finally:
                self.queue.task_done()

    def handle_record(self, record: Any) -> RouteEntry | None:
        event = parse_event(record)
        if event is None:
            return None
        return self.handle_event(event)

    def handle_event(self, event: dict[str, Any]) -> RouteEntry | None:
        if not is_start_event(event):
            return None

        container_id = event_container_id(event)
        if not container_id:
            log_event("WARN", "Discarding start event without a container id")
            return None

        try:
            attrs = self.runtime.inspect(container_id)
        except (DockerException, requests.RequestException) as e:
            log_event("WARN", f"Could not inspect container {container_id[:12]}: {type(e).__name__}: {e}")
            return None

        entry = derive_entry(attrs, self.network)
        if entry is None:
            name = strip_name(attrs.get("Name") or "") or container_id[:12]
            log_event("INFO", f"Not routable (no address or TCP default port): {name}", service_name=name)
            return None

        log_event(
            "INFO",
            f"Registering: {entry.service}.{settings.domain_suffix} → {entry.target}",
            service_name=entry.service,
        )
        self.registry.put(entry.service, entry)
        return entry
