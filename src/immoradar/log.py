"""
Configuración de logging (structlog sobre logging de stdlib).

Se llama una sola vez desde el entry point; los módulos sólo hacen
`structlog.get_logger()`.
"""

import logging
from typing import Optional

import structlog

from immoradar.config import Settings, get_settings


def configure_logging(settings: Optional[Settings] = None) -> None:
    """
    Configura nivel y formato según LOG_LEVEL y LOG_FORMAT.

    LOG_FORMAT=json emite una línea JSON por evento (útil detrás del
    endpoint de disparo); cualquier otro valor usa el renderer de consola.
    """
    settings = settings or get_settings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(message)s", force=True)

    if settings.log_format.lower() == "json":
        renderer = structlog.processors.JSONRenderer(ensure_ascii=False)
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
