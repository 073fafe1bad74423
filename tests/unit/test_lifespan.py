import logging

from fastapi import FastAPI
from fastapi.testclient import TestClient

from vnpit.config import get_settings
from vnpit.lifespan import build_application_lifespan


def test_lifespan_sets_state_and_log_file(monkeypatch, tmp_path):
    monkeypatch.setenv("VNPIT_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("VNPIT_FILE_LOGGING", "true")
    get_settings.cache_clear()
    package_logger = logging.getLogger("vnpit")
    level_before = package_logger.level
    seen = {}

    def _startup(app: FastAPI) -> None:
        seen["regimes"] = list(app.state.regime_codes)
        seen["handler"] = app.state.log_handler

    app = FastAPI(lifespan=build_application_lifespan("unit", startup_hook=_startup))
    with TestClient(app):
        assert app.state.selector is not None
        logging.getLogger("vnpit.solver").warning("solver note")

    assert seen["regimes"] == ["pre_2020", "pre_2026", "2026"]
    assert seen["handler"] not in logging.getLogger("vnpit").handlers
    assert not hasattr(app.state, "selector")
    log_text = (tmp_path / "logs" / "unit.log").read_text(encoding="utf-8")
    assert "Startup complete" in log_text
    assert "solver note" in log_text
    assert "Shutdown complete" in log_text
    assert package_logger.level == level_before
    get_settings.cache_clear()


def test_lifespan_without_file_logging(monkeypatch, tmp_path):
    monkeypatch.setenv("VNPIT_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("VNPIT_FILE_LOGGING", "false")
    get_settings.cache_clear()
    app = FastAPI(lifespan=build_application_lifespan("quiet"))
    with TestClient(app):
        assert app.state.log_handler is None
    assert not (tmp_path / "logs").exists()
    get_settings.cache_clear()


def test_api_announcement_reaches_log_file(monkeypatch, tmp_path):
    from vnpit.api.http import app as api_app

    monkeypatch.setenv("VNPIT_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("VNPIT_FILE_LOGGING", "true")
    get_settings.cache_clear()
    with TestClient(api_app):
        pass
    log_text = (tmp_path / "logs" / "api.log").read_text(encoding="utf-8")
    assert "Vietnam PIT engine ready" in log_text
    get_settings.cache_clear()
