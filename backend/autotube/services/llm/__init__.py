"""LLM provider abstraction layer.

Provides a unified async interface for structured text generation across
providers (Vertex AI and Ollama).

Usage:
    from autotube.services.llm import get_adapter, LLMAdapter

    adapter = get_adapter("gemini-2.5-flash")
    draft = await adapter.generate_text(prompt, ScriptDraft)

    adapter = get_adapter("ollama/llama3.1")
    draft = await adapter.generate_text(prompt, ScriptDraft)
"""

from autotube.services.llm.base import LLMAdapter, strip_code_fences
from autotube.services.llm.registry import get_adapter

__all__ = ["LLMAdapter", "get_adapter", "strip_code_fences"]
