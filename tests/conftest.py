import os as _os
import sys

import pytest
from docker.errors import NotFound

# Ensure project root is importable (so `import dsp` and `import cli` work without installing)
_project_root = _os.path.dirname(_os.path.dirname(__file__))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from dsp import db  # noqa: E402
from dsp.registry import RoutingRegistry  # noqa: E402
from dsp.settings import Settings  # noqa: E402


def container_attrs(name, bridge_ip=None, legacy_ip="", ports=("80/tcp",), networks=None):
    """Build a `docker inspect` shaped dict with just the fields the proxy reads."""
    nets = dict(networks or {})
    if bridge_ip is not None:
        nets["bridge"] = {"IPAddress": bridge_ip}
    return {
        "Name": name,
        "Config": {"ExposedPorts": {p: {} for p in ports} if ports is not None else None},
        "NetworkSettings": {"IPAddress": legacy_ip, "Networks": nets},
    }


def start_event(container_id, **extra):
    ev = {"Type": "container", "Action": "start", "id": container_id}
    ev.update(extra)
    return ev


class FakeRuntime:
    """Stands in for dsp.docker_ops.DockerRuntime; records every call."""

    def __init__(self, containers=None, images=(), stream=()):
        self.containers = dict(containers or {})
        self.images = set(images)
        self.stream = stream
        self.calls = []
        self.next_name = "/quirky_turing"
        self.pull_error = None
        self.create_error = None

    def available(self):
        return True

    def events(self):
        self.calls.append(("events",))
        if isinstance(self.stream, Exception):
            raise self.stream
        return iter(self.stream)

    def inspect(self, container_id):
        self.calls.append(("inspect", container_id))
        if container_id not in self.containers:
            raise NotFound(f"No such container: {container_id}")
        return self.containers[container_id]

    def image_exists(self, image, tag="latest"):
        self.calls.append(("image_exists", image, tag))
        return f"{image}:{tag}" in self.images

    def pull(self, image, tag="latest"):
        self.calls.append(("pull", image, tag))
        if self.pull_error:
            raise self.pull_error
        self.images.add(f"{image}:{tag}")

    def create_and_start(self, image, tag="latest"):
        self.calls.append(("create_and_start", image, tag))
        if self.create_error:
            raise self.create_error
        return self.next_name


@pytest.fixture(autouse=True)
def event_log(tmp_path, monkeypatch):
    """Point the event log at an isolated sqlite file for every test."""
    monkeypatch.setattr(db, "settings", Settings(db_path=str(tmp_path / "events.db")))
    db.init_db()
    return db


@pytest.fixture
def registry():
    return RoutingRegistry()


@pytest.fixture
def runtime():
    return FakeRuntime()
