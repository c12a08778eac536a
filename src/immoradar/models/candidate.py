"""
CandidateRecord: avistaje transitorio de un proyecto inmobiliario.

Lo produce un adaptador de fuente, lo normaliza el extractor de campos
y nunca se persiste tal cual: el orquestador lo convierte en Property.
"""

import re
from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from immoradar.config import (
    CONSTRUCTION_STATUSES,
    PROPERTY_TYPES,
    RAW_SNIPPET_MAX_CHARS,
)

_DECIMAL_RE = re.compile(r"^\d+[.,]\d{1,2}$")
_SEPARATORS_RE = re.compile(r"[\s\u00a0\u202f.,']")
_MONTH_RE = re.compile(r"^\s*(\d{4})(?:[-/](\d{1,2}))?")

PROPERTY_TYPE_SYNONYMS = {
    "apartments": "apartment",
    "appartement": "apartment",
    "appartements": "apartment",
    "flat": "apartment",
    "residential": "apartment",
    "house": "villa",
    "villas": "villa",
    "maison": "villa",
    "terrain": "land",
    "plot": "land",
    "lot": "land",
    "office": "commercial",
    "offices": "commercial",
    "retail": "commercial",
    "commerce": "commercial",
    "mixed-use": "mixed",
    "mixed use": "mixed",
    "mixte": "mixed",
}

CONSTRUCTION_STATUS_SYNONYMS = {
    "planned": "planning",
    "off-plan": "planning",
    "sur plan": "planning",
    "vefa": "planning",
    "permitted": "approved",
    "under construction": "construction",
    "en construction": "construction",
    "in progress": "construction",
    "delivered": "completed",
    "finished": "completed",
    "livré": "completed",
}


def parse_amount(value: Any) -> Optional[float]:
    """
    Convierte un monto a float tolerando separadores de miles.

    Acepta números o strings como "1 500 000", "1.500.000" o "800,000".
    Devuelve None si no hay un número reconocible.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    if _DECIMAL_RE.match(text):
        return float(text.replace(",", "."))

    digits = _SEPARATORS_RE.sub("", text)
    if not digits.isdigit():
        return None
    return float(digits)


def parse_month(value: Any) -> Optional[date]:
    """Normaliza una fecha de entrega a granularidad mensual (día 1)."""
    if value is None:
        return None
    if isinstance(value, date):
        return date(value.year, value.month, 1)
    match = _MONTH_RE.match(str(value))
    if not match:
        return None
    year = int(match.group(1))
    month = int(match.group(2) or 1)
    if not 1 <= month <= 12:
        return None
    return date(year, month, 1)


class CandidateRecord(BaseModel):
    """
    Proyecto candidato extraído de una fuente externa.

    Los rangos invertidos (min > max) se reparan intercambiando los
    valores: el orden de extracción no es confiable.
    """

    title: str = Field(..., description="Nombre del proyecto")
    developer_name: Optional[str] = Field(None, description="Promotor en texto libre")
    district: Optional[str] = Field(None, description="Distrito en texto libre")

    # Precio en MAD
    price_min: Optional[float] = Field(None, description="Precio mínimo (MAD)")
    price_max: Optional[float] = Field(None, description="Precio máximo (MAD)")

    property_type: Optional[str] = Field(None, description="apartment, villa, land, commercial, mixed")
    bedrooms_min: Optional[int] = Field(None, description="Dormitorios mínimos")
    bedrooms_max: Optional[int] = Field(None, description="Dormitorios máximos")
    area_min: Optional[float] = Field(None, description="Superficie mínima m²")
    area_max: Optional[float] = Field(None, description="Superficie máxima m²")

    construction_status: Optional[str] = Field(
        None, description="planning, approved, construction, completed"
    )
    expected_completion: Optional[date] = Field(
        None, description="Entrega estimada (primer día del mes)"
    )

    latitude: Optional[float] = Field(None, description="Latitud si la fuente la provee")
    longitude: Optional[float] = Field(None, description="Longitud si la fuente la provee")

    # Procedencia
    source_url: Optional[str] = Field(None, description="URL del anuncio o artículo")
    source_name: str = Field(..., description="Adaptador que produjo el candidato")
    raw_snippet: Optional[str] = Field(None, description="Texto original para auditoría")

    @field_validator("title")
    @classmethod
    def _require_title(cls, value: str) -> str:
        value = " ".join(value.split())
        if not value:
            raise ValueError("title vacío")
        return value

    @field_validator("developer_name", "district", "source_url", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    @field_validator("price_min", "price_max", "area_min", "area_max", mode="before")
    @classmethod
    def _coerce_amount(cls, value: Any) -> Optional[float]:
        amount = parse_amount(value)
        if amount is None or amount <= 0:
            return None
        return amount

    @field_validator("bedrooms_min", "bedrooms_max", mode="before")
    @classmethod
    def _coerce_count(cls, value: Any) -> Optional[int]:
        amount = parse_amount(value)
        if amount is None or amount <= 0:
            return None
        return int(amount)

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def _coerce_coordinate(cls, value: Any) -> Optional[float]:
        try:
            return float(value) if value not in (None, "") else None
        except (TypeError, ValueError):
            return None

    @field_validator("property_type", mode="before")
    @classmethod
    def _normalize_property_type(cls, value: Any) -> Optional[str]:
        if not value:
            return None
        key = str(value).strip().lower()
        key = PROPERTY_TYPE_SYNONYMS.get(key, key)
        return key if key in PROPERTY_TYPES else None

    @field_validator("construction_status", mode="before")
    @classmethod
    def _normalize_status(cls, value: Any) -> Optional[str]:
        if not value:
            return None
        key = str(value).strip().lower()
        key = CONSTRUCTION_STATUS_SYNONYMS.get(key, key)
        return key if key in CONSTRUCTION_STATUSES else None

    @field_validator("expected_completion", mode="before")
    @classmethod
    def _normalize_month(cls, value: Any) -> Optional[date]:
        return parse_month(value)

    @field_validator("raw_snippet", mode="before")
    @classmethod
    def _bound_snippet(cls, value: Any) -> Optional[str]:
        if not value:
            return None
        return " ".join(str(value).split())[:RAW_SNIPPET_MAX_CHARS]

    @model_validator(mode="after")
    def _repair_ranges(self) -> "CandidateRecord":
        for low, high in (
            ("price_min", "price_max"),
            ("bedrooms_min", "bedrooms_max"),
            ("area_min", "area_max"),
        ):
            low_value = getattr(self, low)
            high_value = getattr(self, high)
            if low_value is not None and high_value is not None and low_value > high_value:
                setattr(self, low, high_value)
                setattr(self, high, low_value)
        return self
