"""Error types shared across the service."""
from __future__ import annotations


class ConfigError(RuntimeError):
    """Missing or invalid configuration; fatal at startup."""


class ClientInputError(Exception):
    """Bad request input. Surfaced to the caller with a fixed message."""

    status_code = 400

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class UnknownProviderError(ClientInputError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown provider: {name}")
        self.name = name


class ProviderError(Exception):
    """Any failure of a generation call, carrying the provider's message."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


RATE_LIMIT_MARKERS = ("429", "too many requests")


def is_rate_limit_error(message: str) -> bool:
    """Return True if a provider error message signals a rate limit."""
    lowered = message.lower()
    return any(marker in lowered for marker in RATE_LIMIT_MARKERS)
