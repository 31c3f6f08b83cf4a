"""Translation package.

- chunking: split Markdown into request-sized chunks
- prompts: system instructions and user prompts per pass
- client: TransformationClient (sequential chunk calls with retry)
"""

from .chunking import CHUNK_SIZE, split_into_chunks
from .client import (
    EmptyResponseError,
    TransformationClient,
    next_retry_delay,
    strip_code_fence,
)

__all__ = [
    "CHUNK_SIZE",
    "split_into_chunks",
    "EmptyResponseError",
    "TransformationClient",
    "next_retry_delay",
    "strip_code_fence",
]
