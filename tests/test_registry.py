import pytest

from infometrics.errors import (
    DuplicateMetricError,
    InvalidLabelError,
    LabelCardinalityError,
    RegistrationError,
)
from infometrics.metrics import MetricRegistry
from infometrics.metrics.registry import INT64_MAX, INT64_MIN
from infometrics.metrics.testing import find_samples


def test_gauge_entry_reused_per_label_tuple():
    reg = MetricRegistry()
    g = reg.add_int64_gauge("g", "test gauge", ("service", "zone"))
    a = g.get_entry("svc", "eu")
    assert g.get_entry("svc", "eu") is a
    assert g.get_entry("svc", "us") is not a
    a.set(3)
    assert reg.sample_value("g", {"service": "svc", "zone": "eu"}) == 3.0
    assert len(g.entries()) == 2


def test_duplicate_name_rejected():
    reg = MetricRegistry()
    reg.add_int64_gauge("dup", "first", ("service",))
    with pytest.raises(DuplicateMetricError):
        reg.add_int64_gauge("dup", "second", ("service",))
    with pytest.raises(DuplicateMetricError):
        reg.add_int64_derived_gauge("dup", "third", ("service",))


def test_same_name_allowed_in_separate_registries():
    MetricRegistry().add_int64_gauge("shared", "a", ("service",))
    MetricRegistry().add_int64_gauge("shared", "b", ("service",))


@pytest.mark.parametrize("keys", [("",), ("1abc",), ("has space",), ("__reserved",), ("a", "a")])
def test_invalid_label_keys(keys):
    with pytest.raises(InvalidLabelError):
        MetricRegistry().add_int64_gauge("g", "bad labels", keys)


def test_invalid_metric_name():
    with pytest.raises(RegistrationError):
        MetricRegistry().add_int64_gauge("bad-name", "dash", ("service",))


def test_label_cardinality_mismatch():
    reg = MetricRegistry()
    g = reg.add_int64_gauge("g", "", ("service", "zone"))
    with pytest.raises(LabelCardinalityError):
        g.get_entry("only-one")
    d = reg.add_int64_derived_gauge("d", "", ("service",))
    with pytest.raises(LabelCardinalityError):
        d.upsert_entry(lambda: 1, "a", "b")


def test_int64_bounds():
    g = MetricRegistry().add_int64_gauge("g", "", ("service",))
    e = g.get_entry("svc")
    e.set(INT64_MAX)
    e.set(INT64_MIN)
    assert e.value == INT64_MIN
    with pytest.raises(ValueError):
        e.set(INT64_MAX + 1)
    with pytest.raises(TypeError):
        e.set(1.5)  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        e.set(True)
    assert e.value == INT64_MIN


def test_unlabeled_gauge():
    reg = MetricRegistry()
    reg.add_int64_gauge("plain", "no labels").get_entry().set(7)
    assert reg.sample_value("plain") == 7.0


def test_derived_gauge_upsert_and_delete():
    reg = MetricRegistry()
    d = reg.add_int64_derived_gauge("d", "derived", ("service",))
    d.upsert_entry(lambda: 1, "a")
    d.upsert_entry(lambda: 2, "b")
    d.upsert_entry(lambda: 3, "a")
    assert sorted(find_samples(reg, "d"), key=lambda s: s[0]["service"]) == [
        ({"service": "a"}, 3.0),
        ({"service": "b"}, 2.0),
    ]
    d.delete_entry("a")
    assert find_samples(reg, "d") == [({"service": "b"}, 2.0)]


def test_read_snapshot_contains_families():
    reg = MetricRegistry(namespace="ns")
    reg.add_int64_gauge("g", "gauge", ("service",)).get_entry("s").set(1)
    reg.add_int64_derived_gauge("d", "derived", ("service",)).upsert_entry(lambda: 2, "s")
    names = sorted(f.name for f in reg.read())
    assert names == ["ns_d", "ns_g"]
    assert reg.get("g") is not None
    assert reg.names() == ["ns_d", "ns_g"]


def test_large_values_exported_as_exact_ints():
    reg = MetricRegistry()
    g = reg.add_int64_gauge("checksum", "", ("service",))
    g.get_entry("svc").set(INT64_MIN + 1)
    assert reg.sample_value("checksum", {"service": "svc"}) == INT64_MIN + 1
    assert find_samples(reg, "checksum") == [({"service": "svc"}, INT64_MIN + 1)]


def test_concurrent_sets_agree_with_export():
    import threading

    reg = MetricRegistry()
    entry = reg.add_int64_gauge("g", "", ("service",)).get_entry("svc")
    workers = 8
    barrier = threading.Barrier(workers)

    def worker(i):
        barrier.wait()
        for n in range(200):
            entry.set(2 ** 60 + i * 1000 + n)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert reg.sample_value("g", {"service": "svc"}) == entry.value
