"""Dataclasses for chunked processing: requests, outcomes and results."""
from __future__ import annotations
from dataclasses import dataclass, field


@dataclass(frozen=True)
class ChunkRequest:
    """One self-contained prompt built from a slice of the input text."""
    prompt: str
    chunk_text: str
    chunk_number: int
    total_chunks: int

    def __post_init__(self) -> None:
        if self.total_chunks < 1 or not 1 <= self.chunk_number <= self.total_chunks:
            raise ValueError(
                f"chunk_number {self.chunk_number} out of range for {self.total_chunks} chunks"
            )


@dataclass(frozen=True)
class ChunkOutcome(ChunkRequest):
    """A chunk after its generation call: exactly one of response/error is set."""
    response: str | None = None
    error: str | None = None

    def __post_init__(self) -> None:
        super().__post_init__()
        if (self.response is None) == (self.error is None):
            raise ValueError("exactly one of response or error must be set")

    @classmethod
    def success(cls, chunk: ChunkRequest, response: str) -> "ChunkOutcome":
        return cls(chunk.prompt, chunk.chunk_text, chunk.chunk_number, chunk.total_chunks, response=response)

    @classmethod
    def failure(cls, chunk: ChunkRequest, error: str) -> "ChunkOutcome":
        return cls(chunk.prompt, chunk.chunk_text, chunk.chunk_number, chunk.total_chunks, error=error)


@dataclass(frozen=True)
class ProcessingResult:
    """Outcomes of a sequential run and whether it stopped on a rate limit."""
    outcomes: tuple[ChunkOutcome, ...] = field(default_factory=tuple)
    rate_limited: bool = False
    total_count: int = 0

    def __post_init__(self) -> None:
        if self.processed_count > self.total_count:
            raise ValueError("processed_count cannot exceed total_count")
        if self.processed_count < self.total_count and not self.rate_limited:
            raise ValueError("processing can only stop early on a rate limit")

    @property
    def processed_count(self) -> int:
        return len(self.outcomes)


@dataclass(frozen=True)
class AssembledResponse:
    """Combined text of all successful parts."""
    combined_text: str
    partial: bool
