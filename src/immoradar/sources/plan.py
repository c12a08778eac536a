"""
Plan de fuentes: lista estática de (adaptador, descriptor) a recorrer.
"""

from dataclasses import dataclass
from typing import Optional

import structlog

from immoradar.config import (
    AI_SEARCH_QUERIES,
    RSS_FEEDS,
    SEARCH_API_QUERIES,
    Settings,
    get_settings,
)
from immoradar.sources.ai_search import AiSearchAdapter
from immoradar.sources.base import BaseSourceAdapter
from immoradar.sources.rss import RssFeedAdapter
from immoradar.sources.search_api import SearchApiAdapter

logger = structlog.get_logger()


@dataclass(frozen=True)
class SourceEntry:
    """Una consulta del plan: qué adaptador y con qué query/feed."""

    adapter: BaseSourceAdapter
    descriptor: str


def build_source_plan(settings: Optional[Settings] = None) -> list[SourceEntry]:
    """
    Arma el plan en orden: consultas IA, feeds RSS, consultas a la API.

    Las fuentes sin credenciales se omiten con un warning.
    """
    settings = settings or get_settings()
    plan: list[SourceEntry] = []

    try:
        ai_adapter = AiSearchAdapter(settings=settings)
        plan.extend(SourceEntry(ai_adapter, query) for query in AI_SEARCH_QUERIES)
    except ValueError as e:
        logger.warning("Búsqueda IA deshabilitada", error=str(e))

    rss_adapter = RssFeedAdapter(settings=settings)
    plan.extend(SourceEntry(rss_adapter, feed) for feed in RSS_FEEDS)

    try:
        search_adapter = SearchApiAdapter(settings=settings)
        plan.extend(SourceEntry(search_adapter, query) for query in SEARCH_API_QUERIES)
    except ValueError as e:
        logger.warning("API de búsqueda deshabilitada", error=str(e))

    logger.info("Plan de fuentes armado", entries=len(plan))
    return plan
