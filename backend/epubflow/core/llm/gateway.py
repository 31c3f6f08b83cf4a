"""LLM Gateway for provider access.

The transformation client talks to an ``LLMGateway``: one prompt plus a system
instruction in, response text out. ``LiteLLMGateway`` routes the call through
LiteLLM so any supported provider can serve it; tests substitute a fake.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Optional

from litellm import acompletion

from .runtime_config import LLMRuntimeConfig

logger = logging.getLogger(__name__)


class LLMGateway(ABC):
    """Abstract gateway for LLM providers."""

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        system_instruction: str,
        temperature: float,
    ) -> str:
        """Make a single LLM call.

        Args:
            prompt: User message content
            system_instruction: System message content
            temperature: Sampling temperature

        Returns:
            Response text (may be empty)

        Raises:
            Exception: Whatever the provider raises; its text carries the
                status indicator the retry policy inspects
        """


class LiteLLMGateway(LLMGateway):
    """Gateway for all providers using LiteLLM.

    Usage:
        gateway = LiteLLMGateway(LLMRuntimeConfig.from_settings(settings))
        text = await gateway.generate("Translate: Hello", "You are a translator.", 0.3)
    """

    def __init__(self, config: LLMRuntimeConfig):
        self.config = config
        logger.info(
            "[LLM Gateway] Initialized: provider=%s, model=%s, litellm_model=%s, base_url=%s",
            config.provider, config.model, config.get_litellm_model(), config.base_url,
        )

    async def generate(
        self,
        prompt: str,
        system_instruction: str,
        temperature: float,
    ) -> str:
        start_time = time.time()

        kwargs = self.config.to_litellm_kwargs(temperature)
        kwargs["messages"] = [
            {"role": "system", "content": system_instruction},
            {"role": "user", "content": prompt},
        ]

        logger.debug(
            "LLM call: model=%s, temperature=%s, prompt_chars=%d",
            kwargs["model"], temperature, len(prompt),
        )

        try:
            response = await acompletion(**kwargs)
        except Exception as e:
            logger.debug("LLM call failed: model=%s, error=%s", kwargs["model"], e)
            raise

        content: Optional[str] = response.choices[0].message.content
        usage = getattr(response, "usage", None)
        logger.info(
            "LLM response: tokens=%s, latency=%dms",
            usage.total_tokens if usage else 0,
            int((time.time() - start_time) * 1000),
        )
        return content or ""
