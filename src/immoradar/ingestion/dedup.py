"""
Detección de duplicados contra el catálogo.

Política write-once: si el candidato ya existe, se descarta sin
fusionar ni actualizar el registro existente.
"""

from typing import Optional

import structlog

from immoradar.database import PropertyRepository
from immoradar.models import CandidateRecord

logger = structlog.get_logger()


class Deduplicator:
    """
    Decide si un candidato ya está en el catálogo según su clave natural.

    - Con source_url: coincidencia exacta de URL (señal más fuerte).
    - Sin source_url: título exacto, más distrito exacto si el adaptador
      lo pide y el candidato tiene distrito.
    """

    def __init__(self, properties: Optional[PropertyRepository] = None):
        self._properties = properties or PropertyRepository()

    def exists(self, candidate: CandidateRecord, match_district: bool = False) -> bool:
        if candidate.source_url:
            found = self._properties.find_by_source_url(candidate.source_url)
            key = "source_url"
        else:
            district = candidate.district if match_district else None
            found = self._properties.find_by_title(candidate.title, district=district)
            key = "title+district" if district else "title"

        if found:
            logger.debug(
                "Proyecto ya existe",
                title=candidate.title,
                key=key,
                property_id=found.get("id"),
            )
            return True
        return False
