import pytest
from pydantic import ValidationError

from vnpit.config import Settings, get_settings


def test_solver_profile_defaults(monkeypatch):
    for key in ("VNPIT_SOLVER_TOLERANCE", "VNPIT_SOLVER_MAX_ITERATIONS", "VNPIT_SOLVER_BOUND_MULTIPLIER"):
        monkeypatch.delenv(key, raising=False)
    profile = Settings().solver_profile()
    assert profile.tolerance == 1
    assert profile.max_iterations == 60
    assert profile.bound_multiplier == 50
    assert profile.max_expansions == 16


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("VNPIT_SOLVER_TOLERANCE", "5")
    monkeypatch.setenv("VNPIT_SOLVER_MAX_ITERATIONS", "0")
    monkeypatch.setenv("VNPIT_DEFAULT_REGION", "3")
    monkeypatch.setenv("VNPIT_FILE_LOGGING", "off")
    get_settings.cache_clear()
    settings = get_settings()
    assert settings.solver_tolerance == 5
    assert settings.solver_max_iterations == 1
    assert settings.default_region == 3
    assert settings.file_logging is False
    get_settings.cache_clear()


@pytest.mark.parametrize("key,value", [("VNPIT_DEFAULT_REGION", "9"), ("VNPIT_SOLVER_TOLERANCE", "-1")])
def test_invalid_env_rejected(monkeypatch, key, value):
    monkeypatch.setenv(key, value)
    with pytest.raises(ValidationError):
        Settings()


def test_env_values_pass_through_validators(monkeypatch):
    monkeypatch.setenv("VNPIT_SOLVER_BOUND_MULTIPLIER", "-4")
    monkeypatch.setenv("VNPIT_SOLVER_MAX_EXPANSIONS", "-2")
    settings = Settings()
    assert settings.solver_bound_multiplier == 1
    assert settings.solver_max_expansions == 0


def test_get_settings_rejects_invalid_region(monkeypatch):
    monkeypatch.setenv("VNPIT_DEFAULT_REGION", "0")
    get_settings.cache_clear()
    with pytest.raises(ValidationError):
        get_settings()
    get_settings.cache_clear()
