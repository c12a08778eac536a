"""
Módulo de proveedores LLM.

Búsqueda web asistida por LLM (Gemini/Groq).
"""

from immoradar.llm.providers import (
    get_llm_provider,
    BaseLLMProvider,
    GeminiProvider,
    GroqProvider,
    LLMResponse,
    PROVIDERS,
)

__all__ = [
    "get_llm_provider",
    "BaseLLMProvider",
    "GeminiProvider",
    "GroqProvider",
    "LLMResponse",
    "PROVIDERS",
]
