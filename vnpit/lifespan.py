from __future__ import annotations

import inspect
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncContextManager

from fastapi import FastAPI

from vnpit.config import Settings, get_settings
from vnpit.core.regimes import RegimeSelector, default_selector

Hook = Callable[[FastAPI], Awaitable[None] | None]

_STATE_ATTRS = ("settings", "selector", "regime_codes", "log_handler", "app_label")


def _open_log_file(logger: logging.Logger, settings: Settings, app_label: str) -> logging.Handler | None:
    if not settings.file_logging:
        return None
    logs_dir = Path(settings.log_dir)
    try:
        logs_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.warning("Unable to create logs directory %s: %s", logs_dir, exc)
        return None
    handler = logging.FileHandler(logs_dir / f"{app_label}.log", encoding="utf-8")
    handler.setLevel(logging.INFO)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s - %(message)s"))
    # attach to the package root so engine loggers ("vnpit.solver" etc.) land in the same file
    logging.getLogger("vnpit").addHandler(handler)
    return handler


def _raise_level(logger: logging.Logger, level: int) -> int:
    previous = logger.level
    if logger.getEffectiveLevel() > level:
        logger.setLevel(level)
    return previous


async def _invoke_hook(hook: Hook | None, app: FastAPI) -> None:
    if hook is None:
        return
    try:
        result = hook(app)
        if inspect.isawaitable(result):
            await result
    except Exception:  # pragma: no cover - hooks are user provided
        logging.getLogger("vnpit").exception("Application lifecycle hook failed")


def build_application_lifespan(
    app_label: str,
    *,
    selector: RegimeSelector | None = None,
    startup_hook: Hook | None = None,
    shutdown_hook: Hook | None = None,
) -> Callable[[FastAPI], AsyncContextManager[None]]:
    base_logger = logging.getLogger("vnpit")

    @asynccontextmanager
    async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
        settings = get_settings()
        logger = base_logger.getChild(app_label)
        active = selector or default_selector()
        log_handler = _open_log_file(logger, settings, app_label)
        previous_level = _raise_level(base_logger, logging.INFO) if log_handler is not None else None

        app.state.settings = settings
        app.state.selector = active
        app.state.regime_codes = [regime.code for regime in active.regimes()]
        app.state.log_handler = log_handler
        app.state.app_label = app_label

        logger.info(
            "Startup complete: regimes=%s version=%s", ",".join(app.state.regime_codes), settings.build_version
        )

        try:
            await _invoke_hook(startup_hook, app)
            yield
        finally:
            await _invoke_hook(shutdown_hook, app)
            logger.info("Shutdown complete")
            if log_handler is not None:
                base_logger.removeHandler(log_handler)
                log_handler.close()
            if previous_level is not None:
                base_logger.setLevel(previous_level)
            for attr in _STATE_ATTRS:
                if hasattr(app.state, attr):
                    delattr(app.state, attr)

    return _lifespan
