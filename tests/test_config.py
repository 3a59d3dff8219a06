from dashboard_engine.config import EngineConfig, load_engine_config


def test_defaults_without_environment(monkeypatch):
    for name in (
        "DASHBOARD_ENGINE_CACHE_ENABLE",
        "DASHBOARD_ENGINE_CACHE_TTL_SECONDS",
        "DASHBOARD_ENGINE_DEFAULT_PAGE_SIZE",
        "DASHBOARD_ENGINE_MAX_PAGE_SIZE",
        "DASHBOARD_ENGINE_SLOW_OPERATION_MS",
        "DASHBOARD_ENGINE_DATABASE_URL",
        "DASHBOARD_ENGINE_JSON_COLUMNS",
    ):
        monkeypatch.delenv(name, raising=False)

    cfg = load_engine_config()

    assert cfg == EngineConfig()
    assert cfg.cache.default_ttl_seconds == 300
    assert cfg.pagination.default_page_size == 25
    assert cfg.repository.database_url is None


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("DASHBOARD_ENGINE_CACHE_ENABLE", "off")
    monkeypatch.setenv("DASHBOARD_ENGINE_CACHE_TTL_SECONDS", "60")
    monkeypatch.setenv("DASHBOARD_ENGINE_MAX_PAGE_SIZE", "100")
    monkeypatch.setenv("DASHBOARD_ENGINE_SLOW_OPERATION_MS", "250.5")
    monkeypatch.setenv("DASHBOARD_ENGINE_DATABASE_URL", "sqlite://")

    cfg = load_engine_config()

    assert cfg.cache.enable is False
    assert cfg.cache.default_ttl_seconds == 60
    assert cfg.pagination.max_page_size == 100
    assert cfg.monitor.slow_operation_ms == 250.5
    assert cfg.repository.database_url == "sqlite://"


def test_malformed_numbers_fall_back_to_defaults(monkeypatch):
    monkeypatch.setenv("DASHBOARD_ENGINE_CACHE_TTL_SECONDS", "five minutes")
    monkeypatch.setenv("DASHBOARD_ENGINE_SLOW_OPERATION_MS", "fast")

    cfg = load_engine_config()

    assert cfg.cache.default_ttl_seconds == 300
    assert cfg.monitor.slow_operation_ms == 1000.0


def test_json_columns_from_environment(monkeypatch):
    monkeypatch.setenv("DASHBOARD_ENGINE_JSON_COLUMNS", " attributes, properties_json ,,")

    assert load_engine_config().repository.json_columns == ["attributes", "properties_json"]

    monkeypatch.delenv("DASHBOARD_ENGINE_JSON_COLUMNS")
    assert load_engine_config().repository.json_columns == []
