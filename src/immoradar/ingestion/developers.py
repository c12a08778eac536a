"""
Resolución de promotores: nombre libre -> identidad estable.
"""

from typing import Optional

import structlog

from immoradar.config import DEFAULT_DEVELOPER_RATING
from immoradar.database import DeveloperRepository
from immoradar.models import Developer

logger = structlog.get_logger()


class DeveloperResolver:
    """
    Obtiene o crea el promotor por nombre (sin distinguir mayúsculas).

    Dos ejecuciones concurrentes pueden crear el mismo promotor nuevo dos
    veces; no hay lock entre procesos.
    """

    def __init__(self, developers: Optional[DeveloperRepository] = None):
        self._developers = developers or DeveloperRepository()
        self._cache: dict[str, str] = {}

    def resolve(self, name: Optional[str]) -> Optional[str]:
        """
        Devuelve el ID del promotor, creándolo si no existe.

        Returns:
            UUID del promotor, o None si el nombre está vacío
        """
        name = " ".join((name or "").split())
        if not name:
            return None

        key = name.lower()
        if key in self._cache:
            return self._cache[key]

        existing = self._developers.find_by_name(name)
        if existing:
            developer_id = existing["id"]
        else:
            row = self._developers.create(
                Developer(name=name, rating=DEFAULT_DEVELOPER_RATING, total_projects=1)
            )
            developer_id = row["id"]

        logger.debug("Promotor resuelto", name=name, id=developer_id)
        self._cache[key] = developer_id
        return developer_id
