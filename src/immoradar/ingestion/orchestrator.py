"""
Orquestador de ejecuciones de ingesta.

Recorre el plan de fuentes en forma secuencial, normaliza y deduplica
cada candidato, lo inserta en el catálogo y deja exactamente un
registro en search_logs por ejecución.
"""

import asyncio
import time
from enum import Enum
from typing import Optional

import structlog

from immoradar.config import PIPELINE_NAME, Settings, get_settings
from immoradar.database import (
    DeveloperRepository,
    PropertyRepository,
    SearchLogRepository,
    SupabaseClient,
    get_supabase_client,
)
from immoradar.exceptions import RunAlreadyInProgressError
from immoradar.ingestion.dedup import Deduplicator
from immoradar.ingestion.developers import DeveloperResolver
from immoradar.ingestion.gazetteer import DistrictGazetteer
from immoradar.models import CandidateRecord, Property, RunLog, RunStatus, RunSummary
from immoradar.sources.plan import SourceEntry, build_source_plan

logger = structlog.get_logger()

# Un lock por pipeline: evita ejecuciones superpuestas dentro del proceso
_RUN_LOCKS: dict[str, asyncio.Lock] = {}


def _run_lock(pipeline: str) -> asyncio.Lock:
    return _RUN_LOCKS.setdefault(pipeline, asyncio.Lock())


class RunState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class IngestionOrchestrator:
    """
    Ejecuta una corrida completa: Idle -> Running -> Completed | Failed.

    Aislamiento de fallas:
    - Un error procesando un candidato se registra y se sigue con el próximo.
    - Un error consultando una entrada del plan se registra y se sigue con la próxima.
    - Cualquier otro error termina la corrida en Failed con log de error.
    """

    def __init__(
        self,
        plan: Optional[list[SourceEntry]] = None,
        client: Optional[SupabaseClient] = None,
        gazetteer: Optional[DistrictGazetteer] = None,
        delay_seconds: Optional[float] = None,
        pipeline_name: str = PIPELINE_NAME,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        client = client or get_supabase_client()

        self._plan = plan
        self._properties = PropertyRepository(client)
        self._search_logs = SearchLogRepository(client)
        self._dedup = Deduplicator(self._properties)
        self._developers = DeveloperResolver(DeveloperRepository(client))
        self._gazetteer = gazetteer or DistrictGazetteer()
        self._delay = (
            self.settings.source_delay_seconds if delay_seconds is None else delay_seconds
        )
        self.pipeline_name = pipeline_name
        self.state = RunState.IDLE

    async def run(self) -> RunSummary:
        """
        Ejecuta la corrida.

        Raises:
            RunAlreadyInProgressError: Si ya hay una corrida del mismo
                pipeline en este proceso (no se registra log)
        """
        lock = _run_lock(self.pipeline_name)
        if lock.locked():
            raise RunAlreadyInProgressError(self.pipeline_name)
        async with lock:
            return await self._run()

    async def _run(self) -> RunSummary:
        self.state = RunState.RUNNING
        started = time.monotonic()
        search_query = self.pipeline_name
        total_found = 0
        new_added = 0

        try:
            plan = self._plan if self._plan is not None else build_source_plan(self.settings)
            search_query = ", ".join(entry.descriptor for entry in plan)
            logger.info("Iniciando búsqueda de proyectos", entries=len(plan))

            for index, entry in enumerate(plan):
                if index > 0 and self._delay > 0:
                    await asyncio.sleep(self._delay)

                found, added = await self._process_entry(entry)
                total_found += found
                new_added += added

            elapsed_ms = self._elapsed_ms(started)
            self._search_logs.create(
                RunLog(
                    search_query=search_query,
                    results_found=total_found,
                    new_properties_added=new_added,
                    execution_time_ms=elapsed_ms,
                    status=RunStatus.SUCCESS,
                )
            )

        except Exception as e:
            self.state = RunState.FAILED
            elapsed_ms = self._elapsed_ms(started)
            logger.error("Búsqueda de proyectos fallida", error=str(e), elapsed_ms=elapsed_ms)
            self._log_failure(search_query, elapsed_ms, str(e))
            return RunSummary(
                success=False,
                execution_time_ms=elapsed_ms,
                message="La búsqueda de proyectos falló",
                error=str(e),
            )

        self.state = RunState.COMPLETED
        logger.info(
            "Búsqueda completada",
            total_found=total_found,
            new_properties_added=new_added,
            elapsed_ms=elapsed_ms,
        )
        if new_added > 0:
            message = f"Se agregaron {new_added} proyectos nuevos"
        else:
            message = "Búsqueda completada sin proyectos nuevos"
        return RunSummary(
            success=True,
            total_found=total_found,
            new_properties_added=new_added,
            execution_time_ms=elapsed_ms,
            message=message,
        )

    async def _process_entry(self, entry: SourceEntry) -> tuple[int, int]:
        """Procesa una entrada del plan. Devuelve (candidatos vistos, insertados)."""
        adapter = entry.adapter
        found = 0
        added = 0

        try:
            async for candidate in adapter.scrape(entry.descriptor):
                found += 1
                try:
                    if self._ingest(candidate, match_district=adapter.MATCH_DISTRICT):
                        added += 1
                except Exception as e:
                    logger.error(
                        "Error procesando candidato",
                        source=adapter.SOURCE_NAME,
                        title=candidate.title,
                        error=str(e),
                    )
        except Exception as e:
            logger.error(
                "Error en entrada del plan",
                source=adapter.SOURCE_NAME,
                descriptor=entry.descriptor,
                error=str(e),
            )

        logger.info(
            "Entrada procesada",
            source=adapter.SOURCE_NAME,
            descriptor=entry.descriptor,
            outcome=adapter.last_outcome.value if adapter.last_outcome else None,
            found=found,
            added=added,
        )
        return found, added

    def _ingest(self, candidate: CandidateRecord, match_district: bool) -> bool:
        """Inserta el candidato si no es duplicado. Devuelve True si se insertó."""
        if self._dedup.exists(candidate, match_district=match_district):
            return False

        developer_id = self._developers.resolve(candidate.developer_name)
        coordinates = self._gazetteer.resolve(
            candidate.district, candidate.latitude, candidate.longitude
        )
        self._properties.create(
            Property.from_candidate(candidate, coordinates, developer_id=developer_id)
        )
        return True

    def _log_failure(self, search_query: str, elapsed_ms: int, error: str) -> None:
        try:
            self._search_logs.create(
                RunLog(
                    search_query=search_query,
                    results_found=0,
                    new_properties_added=0,
                    execution_time_ms=elapsed_ms,
                    status=RunStatus.ERROR,
                    error_message=error,
                )
            )
        except Exception as e:
            logger.error("No se pudo registrar el log de error", error=str(e))

    @staticmethod
    def _elapsed_ms(started: float) -> int:
        return int((time.monotonic() - started) * 1000)
