"""
Proveedores LLM con búsqueda web.

El adaptador de búsqueda con IA sólo necesita una operación: mandar un
prompt, dejar que el modelo busque en la web y recibir texto. Gemini lo
hace con grounding de Google Search; Groq con sus modelos compound.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

import structlog

from immoradar.config import Settings, get_settings

logger = structlog.get_logger()


@dataclass
class LLMResponse:
    """Texto devuelto por el modelo y las URLs que citó como fuente."""
    text: str
    model: str
    provider: str
    tokens_used: Optional[int] = None
    cited_urls: list[str] = field(default_factory=list)


class BaseLLMProvider(ABC):
    """Proveedor capaz de responder usando resultados de búsqueda web."""

    provider_name: str = "base"

    @abstractmethod
    async def search_web(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.1,
        max_tokens: int = 4000,
    ) -> LLMResponse:
        """
        Ejecuta el prompt con búsqueda web habilitada.

        Args:
            system_prompt: Rol y reglas de respuesta
            user_prompt: Qué buscar y en qué formato devolverlo
            temperature: Temperatura de generación (0.0-1.0)
            max_tokens: Máximo de tokens a generar

        Returns:
            LLMResponse con el texto y las fuentes citadas
        """
        pass


class GeminiProvider(BaseLLMProvider):
    """Gemini con la herramienta google_search (grounding)."""

    provider_name = "gemini"

    def __init__(self, settings: Optional[Settings] = None):
        from google import genai

        settings = settings or get_settings()
        if not settings.gemini_api_key:
            raise ValueError("GEMINI_API_KEY no configurada")

        self.model = settings.gemini_model
        self.client = genai.Client(api_key=settings.gemini_api_key)
        logger.info("Proveedor LLM listo", provider=self.provider_name, model=self.model)

    async def search_web(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.1,
        max_tokens: int = 4000,
    ) -> LLMResponse:
        from google.genai import types

        response = await self.client.aio.models.generate_content(
            model=self.model,
            contents=user_prompt,
            config=types.GenerateContentConfig(
                system_instruction=system_prompt,
                temperature=temperature,
                max_output_tokens=max_tokens,
                tools=[types.Tool(google_search=types.GoogleSearch())],
            ),
        )

        usage = response.usage_metadata
        return LLMResponse(
            text=(response.text or "").strip(),
            model=self.model,
            provider=self.provider_name,
            tokens_used=usage.total_token_count if usage else None,
            cited_urls=self._grounding_urls(response),
        )

    @staticmethod
    def _grounding_urls(response) -> list[str]:
        urls = []
        for candidate in response.candidates or []:
            metadata = candidate.grounding_metadata
            if not metadata or not metadata.grounding_chunks:
                continue
            for chunk in metadata.grounding_chunks:
                if chunk.web and chunk.web.uri and chunk.web.uri not in urls:
                    urls.append(chunk.web.uri)
        return urls


class GroqProvider(BaseLLMProvider):
    """
    Groq con modelos compound, que buscan en la web por su cuenta.

    Docs: https://console.groq.com/docs/compound
    """

    provider_name = "groq"

    def __init__(self, settings: Optional[Settings] = None):
        from groq import AsyncGroq

        settings = settings or get_settings()
        if not settings.groq_api_key:
            raise ValueError("GROQ_API_KEY no configurada")

        self.model = settings.groq_model
        if not self.model.startswith("compound"):
            logger.warning("Modelo de Groq sin búsqueda web", model=self.model)

        self.client = AsyncGroq(api_key=settings.groq_api_key)
        logger.info("Proveedor LLM listo", provider=self.provider_name, model=self.model)

    async def search_web(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.1,
        max_tokens: int = 4000,
    ) -> LLMResponse:
        completion = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
        )

        message = completion.choices[0].message
        return LLMResponse(
            text=(message.content or "").strip(),
            model=self.model,
            provider=self.provider_name,
            tokens_used=completion.usage.total_tokens if completion.usage else None,
        )


PROVIDERS: dict[str, type[BaseLLMProvider]] = {
    "gemini": GeminiProvider,
    "groq": GroqProvider,
}


def get_llm_provider(settings: Optional[Settings] = None) -> BaseLLMProvider:
    """
    Instancia el proveedor elegido por LLM_PROVIDER.

    Raises:
        ValueError: Si el proveedor no existe o le falta la API key
    """
    settings = settings or get_settings()
    name = settings.llm_provider.lower()
    if name not in PROVIDERS:
        raise ValueError(f"Proveedor LLM no soportado: {name}. Usar 'gemini' o 'groq'")
    return PROVIDERS[name](settings)
