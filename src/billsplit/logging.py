from __future__ import annotations

import logging

import structlog

from billsplit.config import get_settings


def configure_logging(level: str | None = None, json: bool | None = None) -> None:
    settings = get_settings()
    level_name = (level or settings.log_level).upper()
    numeric_level = logging.getLevelName(level_name)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO
    use_json = settings.log_json if json is None else json

    logging.basicConfig(
        level=numeric_level,
        format="%(message)s",
    )

    renderer = structlog.processors.JSONRenderer() if use_json else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
