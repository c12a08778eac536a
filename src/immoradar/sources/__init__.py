"""
Módulo de fuentes.

Provee adaptadores intercambiables que producen candidatos
a partir de distintas fuentes externas.
"""

from immoradar.sources.base import BaseSourceAdapter, SourceOutcome
from immoradar.sources.ai_search import AiSearchAdapter, extract_json_array
from immoradar.sources.rss import RssFeedAdapter
from immoradar.sources.search_api import SearchApiAdapter
from immoradar.sources.plan import SourceEntry, build_source_plan

__all__ = [
    "BaseSourceAdapter",
    "SourceOutcome",
    "AiSearchAdapter",
    "extract_json_array",
    "RssFeedAdapter",
    "SearchApiAdapter",
    "SourceEntry",
    "build_source_plan",
]
