from infometrics.config import InfoMetricsConfig

_VARS = [
    "INFOMETRICS_SERVICE", "INFOMETRICS_NAMESPACE", "INFOMETRICS_METRICS_HOST",
    "INFOMETRICS_METRICS_PORT", "INFOMETRICS_CONFIG_FILE", "INFOMETRICS_RELOAD_INTERVAL",
    "INFOMETRICS_LOG_LEVEL", "INFOMETRICS_LOG_FILE", "INFOMETRICS_JSON_LOGS",
]


def _clear(monkeypatch):
    for v in _VARS:
        monkeypatch.delenv(v, raising=False)


def test_defaults(monkeypatch):
    _clear(monkeypatch)
    assert InfoMetricsConfig.from_env() == InfoMetricsConfig()


def test_overrides(monkeypatch):
    _clear(monkeypatch)
    monkeypatch.setenv("INFOMETRICS_SERVICE", "authorize")
    monkeypatch.setenv("INFOMETRICS_NAMESPACE", "pomerium")
    monkeypatch.setenv("INFOMETRICS_METRICS_PORT", "9999")
    monkeypatch.setenv("INFOMETRICS_RELOAD_INTERVAL", "2.5")
    monkeypatch.setenv("INFOMETRICS_LOG_LEVEL", "debug")
    monkeypatch.setenv("INFOMETRICS_JSON_LOGS", "yes")
    cfg = InfoMetricsConfig.from_env()
    assert cfg.service == "authorize"
    assert cfg.namespace == "pomerium"
    assert cfg.metrics_port == 9999
    assert cfg.reload_interval == 2.5
    assert cfg.log_level == "DEBUG"
    assert cfg.json_logs is True
    assert cfg.log_file is None


def test_bad_numbers_fall_back(monkeypatch):
    _clear(monkeypatch)
    monkeypatch.setenv("INFOMETRICS_METRICS_PORT", "http")
    monkeypatch.setenv("INFOMETRICS_RELOAD_INTERVAL", "soon")
    cfg = InfoMetricsConfig.from_env()
    assert cfg.metrics_port == 9108
    assert cfg.reload_interval == 30.0
