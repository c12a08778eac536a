"""
Modelos del catálogo persistido en Supabase.

- Developer: promotor inmobiliario (tabla 'developers')
- Property: proyecto del catálogo (tabla 'properties')
- RunLog: registro de cada ejecución de ingesta (tabla 'search_logs')
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from immoradar.config import (
    CITY,
    CURRENCY,
    DEFAULT_CONSTRUCTION_STATUS,
    DEFAULT_DEVELOPER_RATING,
    DEFAULT_INVESTMENT_SCORE,
)
from immoradar.models.candidate import CandidateRecord


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class Developer(BaseModel):
    """Promotor inmobiliario. Identidad: nombre sin distinguir mayúsculas."""

    model_config = ConfigDict(from_attributes=True)

    id: Optional[str] = Field(None, description="UUID generado por Supabase")
    name: str = Field(..., description="Nombre tal como apareció por primera vez")
    rating: float = Field(default=DEFAULT_DEVELOPER_RATING, description="Rating inicial")
    total_projects: int = Field(default=1, description="Proyectos conocidos")

    def to_db_dict(self) -> dict:
        """Convierte a diccionario para inserción en Supabase."""
        return self.model_dump(exclude={"id"})


class Property(BaseModel):
    """
    Proyecto del catálogo.

    Se crea una única vez cuando la ingesta no encuentra duplicado;
    avistajes posteriores de la misma clave natural no lo modifican.
    """

    model_config = ConfigDict(from_attributes=True)

    id: Optional[str] = Field(None, description="UUID generado por Supabase")

    title: str
    developer_id: Optional[str] = None
    district: Optional[str] = None
    city: str = CITY
    latitude: float
    longitude: float

    price_min: Optional[float] = None
    price_max: Optional[float] = None
    currency: str = CURRENCY

    property_type: Optional[str] = None
    bedrooms_min: Optional[int] = None
    bedrooms_max: Optional[int] = None
    area_min: Optional[float] = None
    area_max: Optional[float] = None

    construction_status: str = DEFAULT_CONSTRUCTION_STATUS
    expected_completion_date: Optional[date] = None

    source_url: Optional[str] = None
    source_name: str
    raw_snippet: Optional[str] = None

    is_active: bool = True
    investment_score: float = DEFAULT_INVESTMENT_SCORE
    first_seen_at: str = Field(default_factory=_utcnow_iso)
    last_checked_at: str = Field(default_factory=_utcnow_iso)

    @classmethod
    def from_candidate(
        cls,
        candidate: CandidateRecord,
        coordinates: tuple[float, float],
        developer_id: Optional[str] = None,
    ) -> "Property":
        """Construye el registro del catálogo a partir de un candidato validado."""
        latitude, longitude = coordinates
        return cls(
            title=candidate.title,
            developer_id=developer_id,
            district=candidate.district,
            latitude=latitude,
            longitude=longitude,
            price_min=candidate.price_min,
            price_max=candidate.price_max,
            property_type=candidate.property_type,
            bedrooms_min=candidate.bedrooms_min,
            bedrooms_max=candidate.bedrooms_max,
            area_min=candidate.area_min,
            area_max=candidate.area_max,
            construction_status=candidate.construction_status or DEFAULT_CONSTRUCTION_STATUS,
            expected_completion_date=candidate.expected_completion,
            source_url=candidate.source_url,
            source_name=candidate.source_name,
            raw_snippet=candidate.raw_snippet,
        )

    def to_db_dict(self) -> dict:
        """Convierte a diccionario para inserción en Supabase."""
        return self.model_dump(mode="json", exclude={"id"})


class RunStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class RunLog(BaseModel):
    """Registro append-only de una ejecución de ingesta."""

    search_query: str = Field(..., description="Descriptores consultados, separados por coma")
    results_found: int = Field(0, ge=0)
    new_properties_added: int = Field(0, ge=0)
    execution_time_ms: int = Field(0, ge=0)
    status: RunStatus
    error_message: Optional[str] = None

    def to_db_dict(self) -> dict:
        return self.model_dump(mode="json")


class RunSummary(BaseModel):
    """Resumen devuelto a quien dispara la ejecución."""

    success: bool
    total_found: int = 0
    new_properties_added: int = 0
    execution_time_ms: int = 0
    message: str = ""
    error: Optional[str] = None

    def to_response(self) -> dict:
        """Forma camelCase expuesta por el endpoint de disparo."""
        data = {
            "success": self.success,
            "totalFound": self.total_found,
            "newPropertiesAdded": self.new_properties_added,
            "executionTimeMs": self.execution_time_ms,
            "message": self.message,
        }
        if self.error is not None:
            data["error"] = self.error
        return data
