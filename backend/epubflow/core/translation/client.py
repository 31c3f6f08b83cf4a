"""Transformation client - chunked translate/proofread calls with retry.

Each text is split into chunks that are sent to the LLM gateway strictly one
at a time. Failed calls are retried with backoff: auth and bad-request errors
are fatal, rate limits wait at least ``rate_limit_min_delay`` seconds, and any
other error doubles the delay.
"""

import asyncio
import logging
import re
from typing import Awaitable, Callable, List, Optional

from tenacity import AsyncRetrying, RetryCallState, retry_if_exception, stop_after_attempt

from epubflow.config import Settings, settings as default_settings
from epubflow.core.exceptions import TransformationError
from epubflow.core.llm.gateway import LLMGateway
from epubflow.utils.text import one_line, safe_truncate

from . import prompts
from .chunking import PARAGRAPH_SEPARATOR, split_into_chunks

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]

FATAL_MARKERS = ("401", "403", "400")
RATE_LIMIT_MARKERS = ("429", "RESOURCE_EXHAUSTED", "RESOURCE EXHAUSTED")

# Provider errors are shortened to this many characters in log lines
LOG_ERROR_MAX_CHARS = 300

_FENCE_RE = re.compile(r"^```[\w+-]*[ \t]*\n(.*)\n```$", re.DOTALL)


class EmptyResponseError(Exception):
    """The service returned no text. Treated as a transient failure."""


def _error_text(error: BaseException) -> str:
    parts = [str(error), repr(error)]
    status_code = getattr(error, "status_code", None)
    if status_code is not None:
        parts.append(str(status_code))
    return " ".join(parts)


def is_fatal_error(error: BaseException) -> bool:
    """Authentication and bad-request failures are never retried."""
    text = _error_text(error)
    return any(marker in text for marker in FATAL_MARKERS)


def is_rate_limit_error(error: BaseException) -> bool:
    text = _error_text(error).upper()
    return any(marker in text for marker in RATE_LIMIT_MARKERS)


def next_retry_delay(
    error: BaseException,
    current_delay: float,
    rate_limit_min_delay: float = 15.0,
) -> Optional[float]:
    """Compute the wait before the next attempt.

    Args:
        error: The failure of the last attempt
        current_delay: Delay carried from the previous attempt (seconds)
        rate_limit_min_delay: Floor applied to rate-limit waits (seconds)

    Returns:
        Seconds to wait, or None when the error is fatal
    """
    if is_fatal_error(error):
        return None
    if is_rate_limit_error(error):
        return max(current_delay * 1.5, rate_limit_min_delay)
    return current_delay * 2


def strip_code_fence(response: str, source: str) -> str:
    """Unwrap a response the model wrapped in a Markdown code fence.

    Only applies when the source chunk itself was not fenced.
    """
    stripped = response.strip()
    if source.lstrip().startswith("```"):
        return response
    match = _FENCE_RE.match(stripped)
    if match is None:
        return response
    return match.group(1)


class _BackoffWait:
    """tenacity wait strategy that carries the current delay across attempts."""

    def __init__(self, initial_delay: float, rate_limit_min_delay: float):
        self.delay = initial_delay
        self.rate_limit_min_delay = rate_limit_min_delay

    def __call__(self, retry_state: RetryCallState) -> float:
        error = retry_state.outcome.exception()
        delay = next_retry_delay(error, self.delay, self.rate_limit_min_delay)
        # Only reached for retryable errors
        self.delay = delay if delay is not None else self.delay
        return self.delay


def _describe(error: BaseException) -> str:
    return safe_truncate(one_line(str(error)), LOG_ERROR_MAX_CHARS)


def _is_retryable(error: BaseException) -> bool:
    return isinstance(error, Exception) and not is_fatal_error(error)


class TransformationClient:
    """Translate and proofread Markdown through an LLM gateway.

    Usage:
        client = TransformationClient(LiteLLMGateway(config))
        translated = await client.translate(text, "Japanese", instruction)
        checked = await client.proofread(translated, proofread_instruction)
    """

    def __init__(
        self,
        gateway: LLMGateway,
        settings: Optional[Settings] = None,
        sleep: SleepFunc = asyncio.sleep,
    ):
        self.gateway = gateway
        self.settings = settings or default_settings
        self._sleep = sleep

    async def translate(self, text: str, target_language: str, instruction: str) -> str:
        """Translate text into the target language.

        Raises:
            TransformationError: A chunk failed after the retry budget
        """
        base_instruction = prompts.translate_system_instruction(target_language, instruction)
        return await self._process(
            operation="translate",
            text=text,
            build_prompt=lambda chunk: prompts.translate_prompt(chunk, target_language),
            system_instruction=base_instruction,
            temperature=prompts.TRANSLATE_TEMPERATURE,
            max_retries=self.settings.translate_max_retries,
        )

    async def proofread(self, text: str, instruction: str) -> str:
        """Proofread already-translated text.

        Raises:
            TransformationError: A chunk failed after the retry budget
        """
        return await self._process(
            operation="proofread",
            text=text,
            build_prompt=lambda chunk: prompts.proofread_prompt(chunk, instruction),
            system_instruction=prompts.PROOFREAD_SYSTEM_INSTRUCTION,
            temperature=prompts.PROOFREAD_TEMPERATURE,
            max_retries=self.settings.proofread_max_retries,
        )

    async def _process(
        self,
        operation: str,
        text: str,
        build_prompt: Callable[[str], str],
        system_instruction: str,
        temperature: float,
        max_retries: int,
    ) -> str:
        chunks = split_into_chunks(text, self.settings.chunk_size)
        total = len(chunks)
        outputs: List[str] = []

        if total > 1:
            logger.info("%s: text split into %d chunks", operation, total)

        for index, chunk in enumerate(chunks, start=1):
            if index > 1:
                await self._sleep(self.settings.inter_chunk_delay)

            chunk_instruction = prompts.with_position_note(system_instruction, index, total)
            try:
                result = await self._call_with_retry(
                    build_prompt(chunk), chunk_instruction, temperature, max_retries
                )
            except Exception as e:
                logger.error(
                    "Error in %s chunk %d/%d: %s",
                    operation, index, total, _describe(e),
                )
                raise TransformationError(operation, index, total, cause=e) from e

            outputs.append(strip_code_fence(result, chunk))

        return PARAGRAPH_SEPARATOR.join(outputs)

    async def _call_with_retry(
        self,
        prompt: str,
        system_instruction: str,
        temperature: float,
        max_retries: int,
    ) -> str:
        """Call the gateway, retrying transient failures up to ``max_retries`` times."""
        retrying = AsyncRetrying(
            stop=stop_after_attempt(max_retries + 1),
            retry=retry_if_exception(_is_retryable),
            wait=_BackoffWait(
                self.settings.initial_retry_delay, self.settings.rate_limit_min_delay
            ),
            sleep=self._sleep,
            before_sleep=self._log_retry,
            reraise=True,
        )

        async for attempt in retrying:
            with attempt:
                result = await self.gateway.generate(prompt, system_instruction, temperature)
                if not result or not result.strip():
                    raise EmptyResponseError("Received empty response from LLM")
        return result

    @staticmethod
    def _log_retry(retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception()
        wait = retry_state.next_action.sleep if retry_state.next_action else 0
        if is_rate_limit_error(error):
            logger.warning(
                "Rate limit exceeded (429). Pausing for %.1fs before retry (attempt %d)",
                wait, retry_state.attempt_number,
            )
        else:
            logger.warning(
                "LLM call failed: %s. Retrying in %.1fs (attempt %d)",
                _describe(error), wait, retry_state.attempt_number,
            )
