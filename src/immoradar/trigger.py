"""
Superficie de disparo de la ingesta: ejecución puntual, loop programado
y endpoint HTTP.
"""

import asyncio
from typing import Callable, Optional

import structlog
from aiohttp import web

from immoradar.config import Settings, get_settings
from immoradar.exceptions import RunAlreadyInProgressError
from immoradar.ingestion.orchestrator import IngestionOrchestrator
from immoradar.models import RunSummary

logger = structlog.get_logger()

OrchestratorFactory = Callable[[], IngestionOrchestrator]

CRON_PATH = "/api/cron/search-properties"


async def run_once(factory: Optional[OrchestratorFactory] = None) -> RunSummary:
    """Ejecuta una corrida y devuelve su resumen (nunca lanza)."""
    factory = factory or IngestionOrchestrator
    try:
        orchestrator = factory()
        return await orchestrator.run()
    except RunAlreadyInProgressError as e:
        logger.warning("Corrida omitida", reason=str(e))
        return RunSummary(success=False, message="Corrida omitida", error=str(e))
    except Exception as e:
        logger.error("No se pudo iniciar la corrida", error=str(e))
        return RunSummary(success=False, message="No se pudo iniciar la corrida", error=str(e))


async def run_forever(
    interval_minutes: int,
    factory: Optional[OrchestratorFactory] = None,
) -> None:
    """Ejecuta corridas cada `interval_minutes` minutos."""
    while True:
        summary = await run_once(factory)
        logger.info(
            "Corrida programada finalizada",
            success=summary.success,
            total_found=summary.total_found,
            new_properties_added=summary.new_properties_added,
            next_in_minutes=interval_minutes,
        )
        await asyncio.sleep(interval_minutes * 60)


def create_app(
    settings: Optional[Settings] = None,
    factory: Optional[OrchestratorFactory] = None,
) -> web.Application:
    """
    App HTTP con el endpoint de disparo.

    GET /api/cron/search-properties -> 200 con el resumen, 500 si falla.
    Si CRON_SECRET está configurado exige `Authorization: Bearer <secret>`.
    """
    settings = settings or get_settings()
    app = web.Application()

    async def health(_: web.Request) -> web.Response:
        return web.Response(text="ok")

    async def search_properties(request: web.Request) -> web.Response:
        expected = settings.cron_secret
        if expected and request.headers.get("Authorization") != f"Bearer {expected}":
            return web.json_response({"error": "Unauthorized"}, status=401)

        summary = await run_once(factory)
        status = 200 if summary.success else 500
        return web.json_response(summary.to_response(), status=status)

    app.router.add_get("/health", health)
    app.router.add_get(CRON_PATH, search_properties)
    return app
