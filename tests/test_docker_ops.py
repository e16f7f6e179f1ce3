from types import SimpleNamespace

from docker.errors import DockerException

from dsp.docker_ops import DockerRuntime


class _Container:
    def __init__(self, cid):
        self.id = cid
        self.started = False

    def start(self):
        self.started = True


class _FakeClient:
    def __init__(self, images=(), ping_error=None):
        self.created = []
        self.pulled = []
        self._ping_error = ping_error
        self.api = SimpleNamespace(
            images=lambda: [{"RepoTags": list(images)}, {"RepoTags": None}],
            inspect_container=lambda cid: {"Id": cid, "Name": "/happy_hopper"},
        )
        self.images = SimpleNamespace(pull=lambda image, tag=None: self.pulled.append((image, tag)))
        self.containers = SimpleNamespace(create=self._create)
        self.events_kwargs = None

    def events(self, **kwargs):
        self.events_kwargs = kwargs
        return iter([{"Type": "container", "Action": "start", "id": "abc123"}])

    def _create(self, ref, **kwargs):
        c = _Container("abc123")
        self.created.append((ref, kwargs, c))
        return c

    def ping(self):
        if self._ping_error:
            raise self._ping_error
        return True


def test_image_exists_matches_repo_tags():
    rt = DockerRuntime(_FakeClient(images=["nginx:latest", "redis:7"]))

    assert rt.image_exists("nginx") is True
    assert rt.image_exists("redis", "7") is True
    assert rt.image_exists("redis") is False


def test_create_and_start_returns_raw_name():
    client = _FakeClient()
    rt = DockerRuntime(client)

    assert rt.create_and_start("nginx", "1.25") == "/happy_hopper"
    ref, kwargs, container = client.created[0]
    assert ref == "nginx:1.25"
    assert kwargs == {"tty": False, "auto_remove": True}
    assert container.started


def test_pull_and_available():
    client = _FakeClient()
    rt = DockerRuntime(client)
    rt.pull("nginx", "1.25")

    assert client.pulled == [("nginx", "1.25")]
    assert rt.available() is True
    assert DockerRuntime(_FakeClient(ping_error=DockerException("down"))).available() is False


def test_events_are_decoded_and_filtered_by_the_daemon():
    client = _FakeClient()

    records = list(DockerRuntime(client).events())

    assert records == [{"Type": "container", "Action": "start", "id": "abc123"}]
    assert client.events_kwargs == {"decode": True, "filters": {"type": "container", "event": "start"}}
