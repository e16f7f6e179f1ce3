from threading import Thread

from dsp.registry import RouteEntry, RoutingRegistry


def test_get_missing_returns_none(registry):
    assert registry.get("nope") is None
    assert "nope" not in registry
    assert len(registry) == 0


def test_put_overwrites_last_write_wins(registry):
    registry.put("web", RouteEntry("web", "172.17.0.2", 80))
    registry.put("web", RouteEntry("web", "172.17.0.9", 8080))

    entry = registry.get("web")
    assert entry == RouteEntry("web", "172.17.0.9", 8080)
    assert entry.target == "http://172.17.0.9:8080"
    assert len(registry) == 1


def test_snapshot_is_sorted_copy(registry):
    registry.put("zeta", RouteEntry("zeta", "10.0.0.2", 80))
    registry.put("alpha", RouteEntry("alpha", "10.0.0.1", 80))

    snap = registry.snapshot()
    assert [e.service for e in snap] == ["alpha", "zeta"]

    snap.clear()
    assert len(registry) == 2


def test_concurrent_put_and_get():
    reg = RoutingRegistry()
    errors = []

    def writer(n):
        for i in range(500):
            reg.put(f"svc{i % 10}", RouteEntry(f"svc{i % 10}", f"10.0.{n}.{i % 250}", 80))

    def reader():
        for i in range(500):
            e = reg.get(f"svc{i % 10}")
            if e is not None and e.service != f"svc{i % 10}":
                errors.append(e)

    threads = [Thread(target=writer, args=(n,)) for n in range(4)] + [Thread(target=reader) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert not errors
    assert len(reg) == 10
