"""
Conexión al catálogo en Supabase.

La ingesta sólo consulta e inserta filas; con SUPABASE_SERVICE_KEY
configurada se conecta con el rol service_role.
"""

from functools import lru_cache
from typing import Optional

import structlog
from supabase import Client, create_client

from immoradar.config import Settings, get_settings

logger = structlog.get_logger()


class SupabaseClient:
    """Cliente del catálogo: expone el query builder por tabla."""

    def __init__(self, client: Client, role: str = "anon"):
        self._client = client
        self.role = role

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "SupabaseClient":
        """
        Crea el cliente a partir de la configuración.

        Raises:
            ValueError: Si faltan SUPABASE_URL o SUPABASE_KEY
        """
        settings = settings or get_settings()
        if not settings.supabase_url or not settings.supabase_key:
            raise ValueError("SUPABASE_URL y SUPABASE_KEY son requeridos")

        if settings.supabase_service_key:
            key, role = settings.supabase_service_key, "service_role"
        else:
            key, role = settings.supabase_key, "anon"

        logger.info("Conectando al catálogo", url=settings.supabase_url, role=role)
        return cls(create_client(settings.supabase_url, key), role=role)

    @property
    def client(self) -> Client:
        return self._client

    def table(self, name: str):
        """Query builder de `name` (properties, developers, search_logs)."""
        return self._client.table(name)


@lru_cache
def get_supabase_client() -> SupabaseClient:
    """Cliente compartido por todos los repositorios del proceso."""
    return SupabaseClient.from_settings()
