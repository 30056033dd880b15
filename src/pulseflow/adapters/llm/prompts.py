"""Summarization prompt builder."""

from typing import Optional

from pulseflow.config import PromptsConfig
from pulseflow.core.entities import ContentType


def build_system_prompt(
    content_type: ContentType = ContentType.GENERIC,
    max_length: int = 500,
    prompts: Optional[PromptsConfig] = None,
) -> str:
    """Base prompt, then the content-type instructions, then the length cap."""
    prompts = prompts or PromptsConfig()
    instructions = prompts.content_types.get(
        content_type.value, prompts.content_types.get(ContentType.GENERIC.value, "")
    )
    return (
        f"{prompts.summary_system}\n\n"
        f"{instructions}\n\n"
        f"Maximum summary length: {max_length} characters."
    )


def build_user_prompt(content: str) -> str:
    return f"Content to summarize:\n---\n{content}\n---\n\nProvide a concise summary:"

