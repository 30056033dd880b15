"""LLM summarization adapters."""

from pulseflow.adapters.llm.claude_client import ClaudeSummarizer, map_api_error

__all__ = ["ClaudeSummarizer", "map_api_error"]
