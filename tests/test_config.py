from reclaim_idle.config import Settings


def test_from_env_development():
    s = Settings.from_env({"ENV": "development"})
    assert s.is_development
    assert not s.is_testing
    assert s.prometheus_port == 9090


def test_from_env_overrides():
    s = Settings.from_env({
        "ENV": "testing",
        "RECLAIM_IDLE_PROMETHEUS_SERVICE": "prom",
        "RECLAIM_IDLE_PROMETHEUS_NAMESPACE": "monitoring",
        "RECLAIM_IDLE_PROMETHEUS_PORT": "9091",
    })
    assert s.is_testing
    assert not s.is_development
    assert (s.prometheus_service_name, s.prometheus_namespace, s.prometheus_port) == ("prom", "monitoring", 9091)


def test_defaults():
    s = Settings.from_env({})
    assert s.env == ""
    assert s.prometheus_service_name == "prometheus-kube-prometheus-prometheus"
    assert s.prometheus_namespace == "prometheus"
    assert s.query_timeout_s == 10.0
    assert s.backend_timeout_s == 5.0
