"""
Módulo de base de datos.

Provee acceso a Supabase y las operaciones que necesita la ingesta.
"""

from immoradar.database.supabase_client import get_supabase_client, SupabaseClient
from immoradar.database.repositories import (
    PropertyRepository,
    DeveloperRepository,
    SearchLogRepository,
    escape_like,
)

__all__ = [
    "get_supabase_client",
    "SupabaseClient",
    "PropertyRepository",
    "DeveloperRepository",
    "SearchLogRepository",
    "escape_like",
]
