"""LLM Runtime Configuration.

Single source of truth for the parameters that reach ``litellm.acompletion``.
Built from application settings; temperature is supplied per call by the
transformation client.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from epubflow.config import Settings

logger = logging.getLogger(__name__)


# LiteLLM model prefixes by provider
PROVIDER_PREFIXES = {
    "openai": "",  # No prefix for OpenAI
    "anthropic": "anthropic/",
    "gemini": "gemini/",
    "qwen": "openai/",  # DashScope exposes an OpenAI-compatible API
    "deepseek": "deepseek/",
    "ollama": "ollama/",
    "openrouter": "openrouter/",
}


@dataclass
class LLMRuntimeConfig:
    """Connection and generation parameters for LLM requests."""

    provider: str
    model: str
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    max_tokens: int = 8192

    def get_litellm_model(self) -> str:
        """Get model string in LiteLLM format (provider/model)."""
        prefix = PROVIDER_PREFIXES.get(self.provider, f"{self.provider}/")
        if not prefix or self.model.startswith(prefix):
            return self.model
        return f"{prefix}{self.model}"

    def to_litellm_kwargs(self, temperature: float) -> Dict[str, Any]:
        """Convert to kwargs for litellm.acompletion()."""
        kwargs: Dict[str, Any] = {
            "model": self.get_litellm_model(),
            "temperature": temperature,
            "max_tokens": self.max_tokens,
        }

        if self.api_key:
            kwargs["api_key"] = self.api_key

        if self.base_url:
            kwargs["api_base"] = self.base_url

        return kwargs

    @classmethod
    def from_settings(cls, settings: Settings) -> "LLMRuntimeConfig":
        """Resolve the configured provider, model and key.

        A missing key is not an error here: LiteLLM also reads the provider's
        standard environment variable, and an unauthenticated call fails with
        a 401 that the client treats as fatal.
        """
        api_key = settings.get_api_key()
        if not api_key:
            logger.warning(
                "No API key configured for provider %s; relying on LiteLLM environment lookup",
                settings.llm_provider,
            )

        return cls(
            provider=settings.llm_provider,
            model=settings.llm_model,
            api_key=api_key,
            base_url=settings.llm_base_url,
            max_tokens=settings.llm_max_tokens,
        )
