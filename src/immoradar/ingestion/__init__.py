"""
Módulo de ingesta.

Normalización, deduplicación y resolución de entidades para los
candidatos que producen las fuentes. El orquestador vive en
`immoradar.ingestion.orchestrator` (depende de `immoradar.sources`).
"""

from immoradar.ingestion.gazetteer import DistrictGazetteer, fold
from immoradar.ingestion.extractor import (
    ClassificationRule,
    CONSTRUCTION_STATUS_RULES,
    PROPERTY_TYPE_RULES,
    classify,
    extract_area,
    extract_bedrooms,
    extract_district,
    extract_from_mapping,
    extract_from_text,
    extract_price,
)
from immoradar.ingestion.dedup import Deduplicator
from immoradar.ingestion.developers import DeveloperResolver

__all__ = [
    "DistrictGazetteer",
    "fold",
    "ClassificationRule",
    "CONSTRUCTION_STATUS_RULES",
    "PROPERTY_TYPE_RULES",
    "classify",
    "extract_area",
    "extract_bedrooms",
    "extract_district",
    "extract_from_mapping",
    "extract_from_text",
    "extract_price",
    "Deduplicator",
    "DeveloperResolver",
]
