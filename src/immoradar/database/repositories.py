"""
Repositorios para el catálogo en Supabase.

La ingesta sólo necesita búsquedas puntuales e inserciones:
no actualiza ni borra filas existentes.
"""

from typing import Optional

import structlog

from immoradar.database.supabase_client import get_supabase_client, SupabaseClient
from immoradar.exceptions import CatalogWriteError
from immoradar.models import Developer, Property, RunLog

logger = structlog.get_logger()


def escape_like(value: str) -> str:
    """Escapa comodines de LIKE para que ilike funcione como igualdad."""
    return (
        value.replace("\\", "\\\\")
        .replace("%", "\\%")
        .replace("_", "\\_")
    )


class BaseRepository:
    """Clase base para repositorios."""

    TABLE = ""

    def __init__(self, client: Optional[SupabaseClient] = None):
        self._client = client or get_supabase_client()

    @property
    def client(self) -> SupabaseClient:
        return self._client

    def _insert(self, data: dict) -> dict:
        response = self.client.table(self.TABLE).insert(data).execute()
        if not response.data:
            raise CatalogWriteError(f"Inserción sin resultado en '{self.TABLE}'")
        return response.data[0]


class PropertyRepository(BaseRepository):
    """Repositorio para el catálogo de proyectos (properties)."""

    TABLE = "properties"

    def create(self, prop: Property) -> dict:
        """
        Inserta un nuevo proyecto.

        Returns:
            El registro insertado con su ID

        Raises:
            CatalogWriteError: Si Supabase no devuelve la fila insertada
        """
        row = self._insert(prop.to_db_dict())
        logger.info(
            "Proyecto creado",
            title=prop.title,
            district=prop.district,
            source=prop.source_name,
        )
        return row

    def find_by_source_url(self, source_url: str) -> Optional[dict]:
        """Busca un proyecto por URL de origen exacta."""
        response = (
            self.client.table(self.TABLE)
            .select("id")
            .eq("source_url", source_url)
            .limit(1)
            .execute()
        )
        return response.data[0] if response.data else None

    def find_by_title(
        self, title: str, district: Optional[str] = None
    ) -> Optional[dict]:
        """Busca un proyecto por título exacto y, opcionalmente, distrito exacto."""
        query = self.client.table(self.TABLE).select("id").eq("title", title)
        if district is not None:
            query = query.eq("district", district)
        response = query.limit(1).execute()
        return response.data[0] if response.data else None


class DeveloperRepository(BaseRepository):
    """Repositorio para promotores (developers)."""

    TABLE = "developers"

    def find_by_name(self, name: str) -> Optional[dict]:
        """Busca un promotor por nombre sin distinguir mayúsculas."""
        response = (
            self.client.table(self.TABLE)
            .select("id, name")
            .ilike("name", escape_like(name))
            .limit(1)
            .execute()
        )
        return response.data[0] if response.data else None

    def create(self, developer: Developer) -> dict:
        """Inserta un nuevo promotor."""
        row = self._insert(developer.to_db_dict())
        logger.info("Promotor creado", name=developer.name, id=row.get("id"))
        return row


class SearchLogRepository(BaseRepository):
    """Repositorio append-only para los logs de ejecución (search_logs)."""

    TABLE = "search_logs"

    def create(self, run_log: RunLog) -> dict:
        """Registra el resultado de una ejecución."""
        return self._insert(run_log.to_db_dict())
