import json
import os

from infometrics.metrics import CONFIG_CHECKSUM, CONFIG_LAST_RELOAD_SUCCESS_VIEW, POLICY_COUNT
from infometrics.metrics.testing import sample_value
from infometrics.reloader import ConfigReloader
from infometrics.utils.build_info import compute_config_checksum


def _write(path, cfg):
    path.write_text(json.dumps(cfg), encoding="utf-8")


def _success_rows(info):
    return {r.tag("service"): r.value for r in info.views.retrieve_data(CONFIG_LAST_RELOAD_SUCCESS_VIEW.name)}


def test_reload_success_updates_metrics(info, tmp_path):
    cfg = {"policies": [{"from": "a"}, {"from": "b"}], "x": 1}
    path = tmp_path / "config.json"
    _write(path, cfg)
    reloader = ConfigReloader(info, "proxy", path)

    assert reloader.reload() is True
    assert sample_value(info.registry, CONFIG_CHECKSUM, {"service": "proxy"}) == compute_config_checksum(cfg)
    assert sample_value(info.registry, POLICY_COUNT, {"service": "proxy"}) == 2.0
    assert _success_rows(info) == {"proxy": 1}


def test_reload_failure_keeps_previous_config(info, tmp_path):
    path = tmp_path / "config.json"
    _write(path, {"policies": [1, 2, 3]})
    reloader = ConfigReloader(info, "proxy", path)
    reloader.reload()
    before = sample_value(info.registry, CONFIG_CHECKSUM, {"service": "proxy"})

    path.write_text("{not json", encoding="utf-8")
    assert reloader.reload() is False
    assert sample_value(info.registry, CONFIG_CHECKSUM, {"service": "proxy"}) == before
    assert sample_value(info.registry, POLICY_COUNT, {"service": "proxy"}) == 3.0
    assert _success_rows(info) == {"proxy": 1, "": 0}


def test_reload_rejects_bad_policies(info, tmp_path):
    path = tmp_path / "config.json"
    _write(path, {"policies": "all"})
    assert ConfigReloader(info, "proxy", path).reload() is False
    assert _success_rows(info) == {"": 0}


def test_missing_file_is_failed_reload(info, tmp_path):
    reloader = ConfigReloader(info, "proxy", tmp_path / "absent.json")
    assert reloader.poll() is False
    assert _success_rows(info) == {"": 0}


def test_poll_only_on_change(info, tmp_path):
    path = tmp_path / "config.json"
    _write(path, {"policies": [1]})
    reloader = ConfigReloader(info, "proxy", path)
    assert reloader.poll() is True
    assert reloader.poll() is None

    _write(path, {"policies": [1, 2]})
    st = path.stat()
    os.utime(path, (st.st_atime, st.st_mtime + 10))
    assert reloader.poll() is True
    assert reloader.policy_count() == 2


def test_missing_file_reported_once_until_it_appears(info, tmp_path):
    path = tmp_path / "config.json"
    reloader = ConfigReloader(info, "proxy", path)
    assert reloader.poll() is False
    assert reloader.poll() is None
    assert reloader.poll() is None

    _write(path, {"policies": [1]})
    assert reloader.poll() is True
    assert _success_rows(info) == {"": 0, "proxy": 1}
