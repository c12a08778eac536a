"""
Fuente: API genérica de búsqueda web.

Compatible con Google Custom Search JSON API: cada resultado trae
title, link y snippet.
"""

from typing import Any, Iterator, Optional

import structlog
from pydantic import ValidationError
from tenacity import retry, stop_after_attempt, wait_exponential

from immoradar.config import Settings
from immoradar.exceptions import SourceError
from immoradar.ingestion.extractor import extract_from_text
from immoradar.models import CandidateRecord
from immoradar.sources.base import BaseSourceAdapter

logger = structlog.get_logger()


class SearchApiAdapter(BaseSourceAdapter):
    """Adaptador de API de búsqueda (title/link/snippet -> candidato)."""

    SOURCE_NAME = "search_api"
    MATCH_DISTRICT = True

    def __init__(self, settings: Optional[Settings] = None, results_per_query: int = 10):
        super().__init__(settings)
        if not self.settings.search_api_key or not self.settings.search_api_cx:
            raise ValueError("SEARCH_API_KEY y SEARCH_API_CX son requeridos")
        self.results_per_query = results_per_query

    def build_params(self, query: str) -> dict:
        return {
            "key": self.settings.search_api_key,
            "cx": self.settings.search_api_cx,
            "q": query,
            "num": self.results_per_query,
            "hl": "fr",
        }

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def fetch_raw(self, descriptor: str) -> dict:
        async with self._session() as session:
            async with session.get(
                self.settings.search_api_url, params=self.build_params(descriptor)
            ) as response:
                response.raise_for_status()
                return await response.json(content_type=None)

    def parse(self, payload: Any, descriptor: str) -> Iterator[CandidateRecord]:
        if not isinstance(payload, dict):
            raise SourceError(self.SOURCE_NAME, descriptor, "Respuesta no es un objeto JSON")
        if payload.get("error"):
            raise SourceError(self.SOURCE_NAME, descriptor, str(payload["error"]))

        for item in payload.get("items") or payload.get("results") or []:
            if not isinstance(item, dict):
                continue
            title = (item.get("title") or "").strip()
            link = (item.get("link") or item.get("url") or "").strip()
            if not title or not link:
                continue
            try:
                yield extract_from_text(
                    title,
                    item.get("snippet"),
                    source_name=self.SOURCE_NAME,
                    source_url=link,
                )
            except ValidationError as e:
                logger.warning("Resultado de búsqueda inválido", query=descriptor, error=str(e))
