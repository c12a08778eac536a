"""
Adaptador de fuente base abstracto.

Define la interfaz común para todas las fuentes de candidatos: el
orquestador sólo conoce `scrape(descriptor)` y no sabe qué variante
está recorriendo.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, AsyncGenerator, Iterator, Optional

import aiohttp
import structlog

from immoradar.config import Settings, get_settings
from immoradar.models import CandidateRecord

logger = structlog.get_logger()


class SourceOutcome(str, Enum):
    """Resultado de una consulta; sólo se usa para logging."""

    OK = "ok"
    EMPTY = "empty"
    FAILED = "failed"


class BaseSourceAdapter(ABC):
    """
    Clase base abstracta para adaptadores de fuentes.

    Las subclases implementan dos hooks:
    - fetch_raw: la llamada externa (puede lanzar excepciones)
    - parse: conversión pura del payload a candidatos

    `scrape` nunca propaga fallas transitorias: las registra y termina
    la secuencia sin candidatos.
    """

    # Nombre de la fuente (override en subclases)
    SOURCE_NAME: str = "base"

    # Si la deduplicación por título también exige el mismo distrito
    MATCH_DISTRICT: bool = False

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.last_outcome: Optional[SourceOutcome] = None

    @abstractmethod
    async def fetch_raw(self, descriptor: str) -> Any:
        """
        Consulta la fuente externa.

        Args:
            descriptor: Query o URL de feed

        Returns:
            Payload crudo (texto o JSON) para `parse`
        """
        pass

    @abstractmethod
    def parse(self, payload: Any, descriptor: str) -> Iterator[CandidateRecord]:
        """
        Convierte el payload crudo en candidatos.

        Los items inválidos se descartan individualmente; un payload
        ilegible completo lanza SourceError.
        """
        pass

    async def scrape(self, descriptor: str) -> AsyncGenerator[CandidateRecord, None]:
        """
        Ejecuta la consulta y genera candidatos.

        Cada llamada produce una secuencia nueva y finita.

        Yields:
            CandidateRecord para cada item válido
        """
        self.last_outcome = None
        logger.info("Consultando fuente", source=self.SOURCE_NAME, descriptor=descriptor)

        try:
            payload = await self.fetch_raw(descriptor)
        except Exception as e:
            self.last_outcome = SourceOutcome.FAILED
            logger.error(
                "Error consultando fuente",
                source=self.SOURCE_NAME,
                descriptor=descriptor,
                error=str(e),
            )
            return

        count = 0
        try:
            for candidate in self.parse(payload, descriptor):
                count += 1
                yield candidate
        except Exception as e:
            self.last_outcome = SourceOutcome.FAILED
            logger.error(
                "Respuesta de fuente ilegible",
                source=self.SOURCE_NAME,
                descriptor=descriptor,
                error=str(e),
            )
            return

        self.last_outcome = SourceOutcome.OK if count else SourceOutcome.EMPTY
        logger.info(
            "Fuente consultada",
            source=self.SOURCE_NAME,
            descriptor=descriptor,
            candidates=count,
            outcome=self.last_outcome.value,
        )

    def _session(self, headers: Optional[dict] = None) -> aiohttp.ClientSession:
        """Sesión HTTP con el timeout configurado."""
        return aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.settings.http_timeout_seconds),
            headers=headers,
        )
