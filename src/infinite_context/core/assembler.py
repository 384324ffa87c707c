"""Combine chunk responses into one labelled reply."""
from __future__ import annotations

from infinite_context.common.schema import AssembledResponse, ProcessingResult

PART_SEPARATOR = "\n\n"


def format_part(chunk_number: int, total_chunks: int, response: str) -> str:
    return f"[Part {chunk_number}/{total_chunks}]\n{response}"


def rate_limit_note(processed: int, total: int) -> str:
    return (
        f"\n\n[Note: Rate limit reached. Processed {processed} out of {total} chunks. "
        "Please wait a moment before requesting more.]"
    )


def assemble(result: ProcessingResult) -> AssembledResponse:
    """Join successful chunk responses with part labels, in chunk order."""
    ok = sorted((o for o in result.outcomes if o.response), key=lambda o: o.chunk_number)
    text = PART_SEPARATOR.join(format_part(o.chunk_number, o.total_chunks, o.response) for o in ok)
    if result.rate_limited:
        text += rate_limit_note(result.processed_count, result.total_count)
    return AssembledResponse(combined_text=text, partial=result.rate_limited)
