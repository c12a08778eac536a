"""
Fuente: búsqueda web asistida por LLM.

Le pide al modelo que busque proyectos en la web y devuelva un array
JSON con el esquema del candidato. La respuesta se parsea de forma
defensiva: puede venir envuelta en markdown o con texto alrededor.
"""

import json
import re
from typing import Any, Iterator, Optional

import structlog
from pydantic import ValidationError
from tenacity import retry, stop_after_attempt, wait_exponential

from immoradar.config import Settings
from immoradar.exceptions import SourceError
from immoradar.ingestion.extractor import extract_from_mapping
from immoradar.llm import BaseLLMProvider, get_llm_provider
from immoradar.models import CandidateRecord
from immoradar.sources.base import BaseSourceAdapter

logger = structlog.get_logger()

AI_SEARCH_SYSTEM_PROMPT = """Eres un analista del mercado inmobiliario de Rabat, Marruecos.
Tu trabajo es buscar en la web proyectos inmobiliarios en desarrollo (nuevos programas,
VEFA, proyectos en construcción) y devolver datos estructurados y verificables.

REGLAS IMPORTANTES:
1. Usa la búsqueda web. No inventes proyectos ni URLs.
2. Los precios van en dirhams (MAD) como números, sin separadores.
3. Si un dato no aparece en la fuente, usa null.
4. Responde SOLO con el array JSON, sin texto adicional ni markdown."""

AI_SEARCH_USER_PROMPT = """Search the web for: "{query}"

Find real estate development projects in Rabat, Morocco. For each project extract:
project name, developer name, district/neighborhood, price range in MAD,
property type (apartment/villa/land/commercial/mixed), bedrooms (min-max),
area in m² (min-max), construction status (planning/approved/construction/completed),
expected completion (YYYY-MM) and the source URL.

Return ONLY a JSON array with this exact structure:
[
  {{
    "title": "Project Name",
    "developer": "Developer Name",
    "district": "District Name",
    "price_min": 800000,
    "price_max": 1500000,
    "property_type": "apartment",
    "bedrooms_min": 2,
    "bedrooms_max": 4,
    "area_min": 80,
    "area_max": 150,
    "construction_status": "construction",
    "expected_completion": "2026-12",
    "source_url": "https://..."
  }}
]

If you find no projects, return an empty array: []"""

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)
_TRAILING_COMMA_RE = re.compile(r",\s*([\]}])")


def _strip_line_comments(text: str) -> str:
    """Elimina comentarios // fuera de strings (Llama a veces los agrega)."""
    cleaned_lines = []
    for line in text.split("\n"):
        pos = line.find("//")
        while pos != -1:
            before = line[:pos]
            quote_count = before.count('"') - before.count('\\"')
            if quote_count % 2 == 0:
                line = before.rstrip()
                break
            pos = line.find("//", pos + 2)
        cleaned_lines.append(line)
    return "\n".join(cleaned_lines)


def extract_json_array(raw_text: str) -> list:
    """
    Localiza y parsea el array JSON dentro de la respuesta del modelo.

    Toma desde el primer '[' hasta el último ']'; si el JSON no parsea,
    reintenta quitando comentarios y comas colgantes.

    Raises:
        ValueError: Si no hay array o no se puede parsear
    """
    text = _FENCE_RE.sub("", raw_text or "").strip()

    start = text.find("[")
    end = text.rfind("]")
    if start == -1 or end <= start:
        raise ValueError("No se encontró un array JSON en la respuesta")

    snippet = text[start:end + 1]
    try:
        data = json.loads(snippet)
    except json.JSONDecodeError:
        fixed = _TRAILING_COMMA_RE.sub(r"\1", _strip_line_comments(snippet))
        try:
            data = json.loads(fixed)
        except json.JSONDecodeError as e:
            raise ValueError(f"JSON inválido: {e}") from e

    if not isinstance(data, list):
        raise ValueError("La respuesta no es un array JSON")
    return data


class AiSearchAdapter(BaseSourceAdapter):
    """
    Adaptador de búsqueda web con LLM (Gemini o Groq).

    La deduplicación sin URL usa sólo el título.
    """

    SOURCE_NAME = "ai_search"
    MATCH_DISTRICT = False

    def __init__(
        self,
        provider: Optional[BaseLLMProvider] = None,
        settings: Optional[Settings] = None,
    ):
        super().__init__(settings)
        self._provider = provider or get_llm_provider(self.settings)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def fetch_raw(self, descriptor: str) -> str:
        response = await self._provider.search_web(
            system_prompt=AI_SEARCH_SYSTEM_PROMPT,
            user_prompt=AI_SEARCH_USER_PROMPT.format(query=descriptor),
        )
        logger.debug(
            f"Respuesta de {response.provider}: {response.text[:300]}...",
            tokens=response.tokens_used,
            cited_urls=len(response.cited_urls),
        )
        return response.text

    def parse(self, payload: Any, descriptor: str) -> Iterator[CandidateRecord]:
        try:
            items = extract_json_array(payload)
        except ValueError as e:
            raise SourceError(self.SOURCE_NAME, descriptor, str(e)) from e

        for item in items:
            if not isinstance(item, dict):
                continue
            try:
                yield extract_from_mapping(item, source_name=self.SOURCE_NAME)
            except ValidationError as e:
                logger.warning(
                    "Proyecto descartado por datos inválidos",
                    source=self.SOURCE_NAME,
                    item_title=item.get("title"),
                    error=str(e),
                )
