"""Prompt templating helpers."""
from __future__ import annotations
import re
from pathlib import Path
from typing import Mapping

CHUNK_VARIABLES = ("chunk_number", "total_chunks", "user_request", "chunk_text")

# Prepended to every chunk; each chunk is answered with no other context.
DEFAULT_CHUNK_TEMPLATE = (
    "Initial user's message was too long to process in a single request. "
    "The message has been divided into smaller chunks and processed individually. "
    "You are in chunk #{{chunk_number}} / {{total_chunks}}. "
    "You can assume other chunks are similar to this one. "
    "You do not need to do an introduction or greeting in this chunk. "
    "Just start answer directly from the context of this chunk. "
    "You will be given 1) what the user has asked to do in the beginning of the chunk, "
    "and 2) the chunk of text. "
    "Here is the user's request: {{user_request}}. "
    "Here is the chunk of text: {{chunk_text}}. "
    "Please continue the conversation from this context."
)

_PLACEHOLDER = re.compile(r"\{\{(\w+)\}\}")


def load_template(path: str | Path) -> str:
    """
    Load a prompt template file.

    Args:
        path: Path to template.
    """
    return Path(path).read_text(encoding="utf-8")


def render_prompt(template: str, variables: Mapping[str, object]) -> str:
    """
    Render variables into the template in a single pass.

    Placeholders look like {{name}}. Substituted values are never scanned
    again, so user text containing "{{chunk_text}}" stays literal.

    Args:
        template: Template content.
        variables: Values for the chunk placeholders.

    Returns:
        Rendered prompt.
    """
    unknown = set(variables) - set(CHUNK_VARIABLES)
    if unknown:
        raise KeyError(f"Unknown template variables: {sorted(unknown)}")

    def _sub(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in variables:
            return match.group(0)
        return str(variables[name])

    return _PLACEHOLDER.sub(_sub, template)


def missing_placeholders(template: str) -> list[str]:
    """Return chunk variables the template never references."""
    found = set(_PLACEHOLDER.findall(template))
    return [name for name in CHUNK_VARIABLES if name not in found]
