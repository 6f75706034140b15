"""ToneMeter LLM integration module.

Provides a thin wrapper around the Anthropic API and the prompt used by the
tone classifier.
"""

from tonemeter.llm.client import LLMClient, LLMResponse

__all__ = [
    "LLMClient",
    "LLMResponse",
]
