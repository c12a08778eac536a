"""
Gazetteer de distritos: nombre de distrito -> coordenadas aproximadas.
"""

import re
import unicodedata
from typing import Optional

import structlog

from immoradar.config import DISTRICT_COORDINATES, RABAT_BOUNDS, RABAT_CENTER

logger = structlog.get_logger()

Coordinates = tuple[float, float]
Bounds = tuple[float, float, float, float]


def fold(text: Optional[str]) -> str:
    """Minúsculas, sin acentos y con espacios colapsados."""
    normalized = unicodedata.normalize("NFKD", text or "")
    ascii_text = normalized.encode("ascii", "ignore").decode("ascii")
    return re.sub(r"\s+", " ", ascii_text).strip().lower()


def in_area(latitude: float, longitude: float, bounds: Bounds = RABAT_BOUNDS) -> bool:
    """True si el punto cae dentro de la caja (lat_min, lat_max, lon_min, lon_max)."""
    lat_min, lat_max, lon_min, lon_max = bounds
    return lat_min <= latitude <= lat_max and lon_min <= longitude <= lon_max


class DistrictGazetteer:
    """
    Lookup estático con fallback difuso.

    Primero busca la clave exacta; si no, la primera entrada (en orden de
    tabla) cuya clave contiene al nombre o está contenida en él.
    """

    def __init__(
        self,
        table: Optional[dict[str, Coordinates]] = None,
        default: Coordinates = RABAT_CENTER,
        bounds: Bounds = RABAT_BOUNDS,
    ):
        self._table = dict(table if table is not None else DISTRICT_COORDINATES)
        self._folded = [(fold(key), coords) for key, coords in self._table.items()]
        self.default = default
        self.bounds = bounds

    def locate(self, district: Optional[str]) -> Optional[Coordinates]:
        if not district:
            return None

        exact = self._table.get(district)
        if exact is not None:
            return exact

        needle = fold(district)
        if not needle:
            return None
        for key, coords in self._folded:
            if needle in key or key in needle:
                return coords
        return None

    def resolve(
        self,
        district: Optional[str],
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
    ) -> Coordinates:
        """
        Coordenadas finales para persistir.

        Las coordenadas provistas por la fuente tienen prioridad si caen
        dentro del área de Rabat; si no, se usa el distrito y, si tampoco
        se reconoce, el centro de Rabat.
        """
        if latitude is not None and longitude is not None:
            if in_area(latitude, longitude, self.bounds):
                return (latitude, longitude)
            logger.debug(
                "Coordenadas fuera de Rabat descartadas",
                district=district,
                latitude=latitude,
                longitude=longitude,
            )
        return self.locate(district) or self.default
