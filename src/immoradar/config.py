"""
Configuración de ImmoRadar.

Settings se lee de variables de entorno (o .env); las constantes de
dominio (distritos de Rabat, defaults del catálogo, fuentes) viven a
nivel de módulo.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# .env en la raíz del repo (src/immoradar/config.py -> ../../..)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Credenciales, proveedores y parámetros de la ingesta."""

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Supabase
    supabase_url: str = Field(..., description="URL del proyecto Supabase del catálogo")
    supabase_key: str = Field(..., description="Anon key (lectura y escritura si RLS lo permite)")
    supabase_service_key: Optional[str] = Field(
        None, description="Service role key; si está, se usa para insertar"
    )

    # Búsqueda con IA
    llm_provider: str = Field(
        "gemini",
        description="Proveedor de LLM con búsqueda web: 'gemini' o 'groq'"
    )

    # Gemini
    gemini_api_key: Optional[str] = Field(None, description="API key de Gemini (grounding con Google Search)")
    gemini_model: str = Field("gemini-2.0-flash", description="Modelo de Gemini con soporte de google_search")

    # Groq
    groq_api_key: Optional[str] = Field(None, description="API key de Groq (modelos compound)")
    groq_model: str = Field(
        "compound-beta",
        description="Modelo de Groq con búsqueda web integrada (compound-beta, compound-beta-mini)"
    )

    # Search API (compatible con Google Custom Search JSON)
    search_api_url: str = Field(
        "https://www.googleapis.com/customsearch/v1",
        description="Endpoint de la API de búsqueda",
    )
    search_api_key: Optional[str] = Field(None, description="API key de la API de búsqueda")
    search_api_cx: Optional[str] = Field(None, description="ID del motor de búsqueda")

    # Ingesta
    source_delay_seconds: float = Field(
        3.0, ge=0.0, description="Pausa entre consultas a fuentes externas (segundos)"
    )
    http_timeout_seconds: float = Field(
        30.0, gt=0.0, description="Timeout total de requests HTTP (segundos)"
    )
    rss_user_agent: str = Field(
        "ImmoRadar/1.0 (+suivi des projets immobiliers neufs de Rabat)",
        description="User-Agent para feeds RSS",
    )

    # Scheduler
    schedule_interval_minutes: int = Field(
        30, ge=1, description="Intervalo entre ejecuciones programadas"
    )
    cron_secret: Optional[str] = Field(
        None, description="Bearer token requerido por el endpoint de disparo"
    )

    # Logging
    log_level: str = Field("INFO", description="Nivel de logging")
    log_format: str = Field("console", description="Formato de logs: 'console' o 'json'")


@lru_cache
def get_settings() -> Settings:
    """Settings del proceso (se leen una vez)."""
    return Settings()


# Ciudad y moneda del catálogo
CITY = "Rabat"
CURRENCY = "MAD"

RABAT_DISTRICTS = [
    "Agdal",
    "Hassan",
    "Hay Riad",
    "Souissi",
    "Océan",
    "Akkari",
    "Yacoub El Mansour",
    "Hay Nahda",
    "Aviation",
    "Orangers",
    "Ambassadeurs",
    "Diour Jamaa",
]

# Coordenadas aproximadas por distrito (lat, lon)
DISTRICT_COORDINATES: dict[str, tuple[float, float]] = {
    "Agdal": (33.9716, -6.8498),
    "Hassan": (34.0209, -6.8417),
    "Hay Riad": (33.9598, -6.8672),
    "Souissi": (33.9839, -6.8365),
    "Océan": (34.0380, -6.8120),
    "Témara": (33.9280, -6.9060),
    "Bouregreg": (34.0250, -6.8320),
    "Akkari": (34.0035, -6.8590),
    "Yacoub El Mansour": (33.9930, -6.8830),
    "Hay Nahda": (33.9780, -6.8180),
}

# Centro geográfico de Rabat, usado cuando el distrito no se reconoce
RABAT_CENTER: tuple[float, float] = (34.0209, -6.8416)

# Caja aproximada del área de Rabat-Témara (lat_min, lat_max, lon_min, lon_max).
# Coordenadas de una fuente fuera de esta caja se ignoran.
RABAT_BOUNDS: tuple[float, float, float, float] = (33.85, 34.10, -6.95, -6.70)

PROPERTY_TYPES = ["apartment", "villa", "land", "commercial", "mixed"]

CONSTRUCTION_STATUSES = ["planning", "approved", "construction", "completed"]

# Valores por defecto del catálogo
DEFAULT_DEVELOPER_RATING = 3.5
DEFAULT_INVESTMENT_SCORE = 50
DEFAULT_CONSTRUCTION_STATUS = "planning"

# Extracción de campos
MIN_PLAUSIBLE_PRICE = 10_000
POINT_PRICE_SPREAD = 0.05
RAW_SNIPPET_MAX_CHARS = 500
MAX_ITEMS_PER_FEED = 10

PIPELINE_NAME = "search-properties"

# Fuentes configuradas
AI_SEARCH_QUERIES = [
    "Mubawab nouveaux projets immobiliers Rabat 2026",
    "Avito projets neufs Rabat Hay Riad",
    "nouveaux programmes immobiliers Rabat Souissi",
    "Prestigia Rabat nouveaux projets",
    "Alliances développement Rabat",
]

RSS_FEEDS = [
    "https://news.google.com/rss/search?q=projet+immobilier+Rabat&hl=fr&gl=MA&ceid=MA:fr",
    "https://news.google.com/rss/search?q=programme+immobilier+neuf+Rabat&hl=fr&gl=MA&ceid=MA:fr",
]

SEARCH_API_QUERIES = [
    "projet immobilier neuf Rabat appartement prix DH",
    "nouveau programme villa Rabat Souissi prix",
]
