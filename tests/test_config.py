import pytest

from trip_planner import config


@pytest.mark.parametrize(
    "raw, expected",
    [("1", True), ("yes", True), ("ON", True), ("0", False), ("off", False), ("maybe", True)],
)
def test_env_bool(monkeypatch, raw, expected):
    monkeypatch.setenv("TRIPS_TEST_FLAG", raw)
    assert config._env_bool("TRIPS_TEST_FLAG", True) is expected


def test_env_numbers_fall_back_on_garbage(monkeypatch):
    monkeypatch.setenv("TRIPS_TEST_INT", "twelve")
    monkeypatch.setenv("TRIPS_TEST_FLOAT", "1.5")
    assert config._env_int("TRIPS_TEST_INT", 7) == 7
    assert config._env_float("TRIPS_TEST_FLOAT", 0.0) == 1.5
    monkeypatch.delenv("TRIPS_TEST_INT")
    assert config._env_int("TRIPS_TEST_INT", 3) == 3


@pytest.mark.parametrize("raw, expected", [("", None), ("0", None), ("-2", None), ("x", None), ("2.5", 2.5)])
def test_optional_timeout(monkeypatch, raw, expected):
    monkeypatch.setenv("TRIPS_TEST_TIMEOUT", raw)
    assert config._env_optional_float("TRIPS_TEST_TIMEOUT") == expected


def test_defaults_are_sane():
    assert config.ROUTING_CHUNK_SIZE >= 2
    assert config.DEFAULT_START_KEY in config.START_PRESETS
    assert config.CUSTOM_PLACE_PREFIX == "custom-"
