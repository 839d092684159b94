import importlib

import lazycache.config as config_mod


def test_env_helpers_fall_back_on_missing_or_invalid(monkeypatch):
    monkeypatch.delenv("X_INT", raising=False)
    assert config_mod._env_int("X_INT", 3) == 3

    monkeypatch.setenv("X_INT", "abc")
    assert config_mod._env_int("X_INT", 3) == 3

    monkeypatch.setenv("X_INT", " 42 ")
    assert config_mod._env_int("X_INT", 3) == 42

    monkeypatch.setenv("X_FLOAT", "1.5")
    assert config_mod._env_float("X_FLOAT", 0.0) == 1.5

    monkeypatch.setenv("X_FLOAT", "soon")
    assert config_mod._env_float("X_FLOAT", 2.0) == 2.0


def test_env_bool(monkeypatch):
    monkeypatch.setenv("X_BOOL", "Yes")
    assert config_mod._env_bool("X_BOOL", False) is True

    monkeypatch.setenv("X_BOOL", "0")
    assert config_mod._env_bool("X_BOOL", True) is False

    monkeypatch.delenv("X_BOOL")
    assert config_mod._env_bool("X_BOOL", True) is True


def test_module_constants_read_environment(monkeypatch):
    monkeypatch.setenv("LAZYCACHE_CAPACITY", "128")
    monkeypatch.setenv("LAZYCACHE_TTL_SECONDS", "2.5")
    monkeypatch.setenv("LAZYCACHE_LOG_LEVEL", "debug")

    try:
        mod = importlib.reload(config_mod)
        assert mod.CACHE_CAPACITY == 128
        assert mod.CACHE_TTL_SECONDS == 2.5
        assert mod.LOG_LEVEL == "DEBUG"
    finally:
        monkeypatch.undo()
        importlib.reload(config_mod)
