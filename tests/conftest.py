"""Fixtures compartidas de los tests de ingesta."""

import os
import uuid

os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
os.environ.setdefault("SOURCE_DELAY_SECONDS", "0")

import pytest

from immoradar.config import get_settings
from immoradar.models import CandidateRecord

from tests.fakes import FakeSupabaseClient


@pytest.fixture
def settings():
    get_settings.cache_clear()
    return get_settings()


@pytest.fixture
def fake_client():
    return FakeSupabaseClient()


@pytest.fixture
def pipeline_name():
    """Nombre de pipeline único: los locks de corrida no se comparten entre tests."""
    return f"test-{uuid.uuid4().hex[:8]}"


@pytest.fixture
def jnane_candidate():
    return CandidateRecord(
        title="Jnane Al Houda",
        district="Hay Riad",
        source_url="https://x/1",
        price_min=800000,
        price_max=1500000,
        source_name="static",
    )
