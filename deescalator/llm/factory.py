"""
LLM provider factory.
"""

from typing import Optional

from deescalator.config import settings
from deescalator.llm import LLMProvider


def get_provider(provider_name: Optional[str] = None) -> LLMProvider:
    """Return the configured LLM provider (DEESCALATOR_LLM_PROVIDER)."""
    provider_name = provider_name or settings.LLM_PROVIDER
    if provider_name == "gemini":
        from deescalator.llm.gemini import GeminiProvider
        return GeminiProvider(
            api_key=settings.GEMINI_API_KEY,
            model=settings.GEMINI_MODEL,
        )
    raise ValueError(f"Unknown LLM provider: {provider_name}")
