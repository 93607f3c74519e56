import pytest

from watchcast.shared.config import EnvironConfig, config


@pytest.fixture
def patched(monkeypatch):
    monkeypatch.setitem(config._config, "WATCHCAST_TEST_NUMBER", " 42.5 ")
    monkeypatch.setitem(config._config, "WATCHCAST_TEST_BAD", "soon")
    monkeypatch.setitem(config._config, "WATCHCAST_TEST_BLANK", "")
    return config


def test_singleton():
    assert EnvironConfig() is config


def test_env_example_is_loaded():
    assert "POLL_INTERVAL_LIVE_SECONDS" in config


def test_get_default(patched):
    assert patched.get("WATCHCAST_TEST_MISSING", "fallback") == "fallback"
    with pytest.raises(KeyError):
        patched["WATCHCAST_TEST_MISSING"]


def test_get_float(patched):
    assert patched.get_float("WATCHCAST_TEST_NUMBER", 1.0) == 42.5
    assert patched.get_float("WATCHCAST_TEST_BAD", 1.0) == 1.0
    assert patched.get_float("WATCHCAST_TEST_BLANK", 3.0) == 3.0
    assert patched.get_float("WATCHCAST_TEST_MISSING", 7.0) == 7.0
