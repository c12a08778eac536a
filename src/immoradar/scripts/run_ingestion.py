"""
Script para disparar la búsqueda de proyectos inmobiliarios.

Uso:
    python -m immoradar.scripts.run_ingestion              # una corrida
    python -m immoradar.scripts.run_ingestion --every 30   # cada 30 minutos
    python -m immoradar.scripts.run_ingestion --serve      # endpoint HTTP
"""

import argparse
import asyncio
import os
import sys
from typing import Optional

import structlog
from aiohttp import web

from immoradar.config import get_settings
from immoradar.log import configure_logging
from immoradar.trigger import CRON_PATH, create_app, run_forever, run_once

logger = structlog.get_logger()


def build_parser(default_interval: int) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Búsqueda de proyectos inmobiliarios en Rabat"
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--every",
        type=int,
        nargs="?",
        const=default_interval,
        default=None,
        metavar="MINUTES",
        help=f"Repetir la corrida cada N minutos (sin valor: {default_interval})",
    )
    mode.add_argument(
        "--serve",
        action="store_true",
        help=f"Exponer GET {CRON_PATH} para un cron externo",
    )
    parser.add_argument("--host", default="0.0.0.0", help="Host para --serve")
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.getenv("PORT", "10000")),
        help="Puerto para --serve (default: $PORT o 10000)",
    )
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point: devuelve 0 si la corrida fue exitosa, 1 si no."""
    settings = get_settings()
    configure_logging(settings)
    args = build_parser(settings.schedule_interval_minutes).parse_args(argv)

    try:
        if args.serve:
            logger.info("Endpoint de disparo activo", path=CRON_PATH, port=args.port)
            web.run_app(create_app(settings), host=args.host, port=args.port, print=None)
            return 0

        if args.every is not None:
            logger.info("Ingesta programada", every_minutes=args.every)
            asyncio.run(run_forever(args.every))
            return 0

        summary = asyncio.run(run_once())
        logger.info("Resultado", **summary.to_response())
        return 0 if summary.success else 1

    except KeyboardInterrupt:
        logger.info("Ingesta interrumpida por usuario")
        return 130


if __name__ == "__main__":
    sys.exit(main())
