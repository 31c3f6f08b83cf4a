"""LLM integration package.

- LLMRuntimeConfig: provider, model and key resolved from settings
- LLMGateway / LiteLLMGateway: single-call interface used by the
  transformation client
"""

from .runtime_config import LLMRuntimeConfig
from .gateway import LLMGateway, LiteLLMGateway

__all__ = [
    "LLMRuntimeConfig",
    "LLMGateway",
    "LiteLLMGateway",
]
