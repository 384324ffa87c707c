"""Word-count chunking of long text into per-chunk prompts."""
from __future__ import annotations

import math

from infinite_context.common.schema import ChunkRequest
from infinite_context.common.templates import DEFAULT_CHUNK_TEMPLATE, render_prompt

DEFAULT_CHUNK_SIZE = 500


def split_text(
    text: str,
    user_request: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    template: str = DEFAULT_CHUNK_TEMPLATE,
) -> list[ChunkRequest]:
    """
    Split text into word-count chunks and build one prompt per chunk.

    Words are whitespace-separated runs, a rough stand-in for model tokens.
    Original spacing is not kept: chunk text is its words joined by single
    spaces. Empty or whitespace-only text gives no chunks.
    """
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    words = text.split()
    total = math.ceil(len(words) / chunk_size)

    chunks = []
    for start in range(0, len(words), chunk_size):
        chunk_text = " ".join(words[start:start + chunk_size])
        number = start // chunk_size + 1
        prompt = render_prompt(
            template,
            {
                "chunk_number": number,
                "total_chunks": total,
                "user_request": user_request,
                "chunk_text": chunk_text,
            },
        )
        chunks.append(ChunkRequest(prompt=prompt, chunk_text=chunk_text, chunk_number=number, total_chunks=total))

    return chunks
