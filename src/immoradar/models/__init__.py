"""
Modelos de datos del sistema.

- Transitorio: CandidateRecord (avistaje extraído de una fuente)
- Catálogo: Developer, Property, RunLog
"""

from immoradar.models.candidate import CandidateRecord, parse_amount, parse_month
from immoradar.models.catalog import (
    Developer,
    Property,
    RunLog,
    RunStatus,
    RunSummary,
)

__all__ = [
    # Transitorio
    "CandidateRecord",
    "parse_amount",
    "parse_month",
    # Catálogo
    "Developer",
    "Property",
    "RunLog",
    "RunStatus",
    "RunSummary",
]
