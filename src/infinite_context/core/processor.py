"""Sequential chunk processing with stop-on-rate-limit."""
from __future__ import annotations
import logging
import time
from typing import Callable, Iterable, Protocol

from infinite_context.common.errors import ProviderError, is_rate_limit_error
from infinite_context.common.schema import ChunkOutcome, ChunkRequest, ProcessingResult
from infinite_context.core.gateway import Provider

LOGGER = logging.getLogger("infinite_context.processor")

DEFAULT_DELAY_S = 0.1


class Gateway(Protocol):
    def generate(self, provider: Provider, prompt: str) -> str: ...


def process_chunks(
    chunks: Iterable[ChunkRequest],
    gateway: Gateway,
    provider: Provider = Provider.GEMINI,
    delay_s: float = DEFAULT_DELAY_S,
    sleep: Callable[[float], None] = time.sleep,
) -> ProcessingResult:
    """
    Run one generation call per chunk, in order.

    After each success the loop waits `delay_s` to stay under provider quotas.
    A failure whose message looks like a rate limit stops the run; nothing is
    recorded for that chunk. Any other provider failure is recorded on the
    chunk and the run continues.

    Args:
        chunks: Chunks in ascending chunk_number order.
        gateway: Model gateway used for every call.
        provider: Provider to call.
        delay_s: Pause after each successful call.
        sleep: Sleep function, swappable in tests.
    """
    chunks = list(chunks)
    outcomes: list[ChunkOutcome] = []
    rate_limited = False

    for chunk in chunks:
        try:
            response = gateway.generate(provider, chunk.prompt)
        except ProviderError as e:
            LOGGER.error("Error processing chunk %s/%s: %s", chunk.chunk_number, chunk.total_chunks, e)
            if is_rate_limit_error(e.message):
                rate_limited = True
                LOGGER.warning(
                    "Rate limit reached after %s of %s chunks; stopping", len(outcomes), len(chunks)
                )
                break
            outcomes.append(ChunkOutcome.failure(chunk, e.message))
            continue

        outcomes.append(ChunkOutcome.success(chunk, response))
        if delay_s > 0:
            sleep(delay_s)

    return ProcessingResult(outcomes=tuple(outcomes), rate_limited=rate_limited, total_count=len(chunks))
