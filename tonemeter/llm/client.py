"""LLM client wrapper for ToneMeter.

Provides a unified interface to the Anthropic API with an explicit request
timeout and graceful "unconfigured" behaviour when no API key is set.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass

import anthropic

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-3-5-haiku-20241022"
DEFAULT_TIMEOUT = 8.0


class LLMNotConfigured(RuntimeError):
    """Raised when a completion is requested without an API key."""


# ---------------------------------------------------------------------------
# Response dataclass
# ---------------------------------------------------------------------------


@dataclass
class LLMResponse:
    """Structured response from an LLM call."""

    content: str
    model: str = ""


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class LLMClient:
    """Thin wrapper around the Anthropic Python SDK.

    Parameters
    ----------
    model : str
        Model identifier to use for completions.
    api_key : str | None
        Anthropic API key.  Falls back to the ``ANTHROPIC_API_KEY``
        environment variable when *None*.
    timeout : float
        Per-request timeout in seconds, passed to the SDK.  Retries are
        disabled so the timeout bounds the whole call.
    """

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.model = model
        self.timeout = timeout
        self.api_key = api_key or os.environ.get("ANTHROPIC_API_KEY", "")
        self._configured = bool(self.api_key)

        if self._configured:
            self._client = anthropic.Anthropic(
                api_key=self.api_key,
                timeout=timeout,
                max_retries=0,
            )
        else:
            self._client = None  # type: ignore[assignment]

    @property
    def configured(self) -> bool:
        """Return *True* if an API key is available."""
        return self._configured

    def complete(
        self,
        prompt: str,
        system_prompt: str | None = None,
        max_tokens: int = 1024,
        temperature: float = 0.0,
    ) -> LLMResponse:
        """Send a completion request and return an :class:`LLMResponse`.

        Raises :class:`LLMNotConfigured` when no API key is set; SDK errors
        (timeouts, connection failures, API errors) propagate unchanged.
        """
        if not self._configured:
            raise LLMNotConfigured("LLM not configured. Set ANTHROPIC_API_KEY.")

        kwargs: dict = {
            "model": self.model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system_prompt:
            kwargs["system"] = system_prompt

        start = time.monotonic()
        response = self._client.messages.create(**kwargs)
        latency_ms = int((time.monotonic() - start) * 1000)

        content = "".join(
            getattr(block, "text", "") for block in (response.content or [])
        )
        logger.debug("completion from %s in %d ms", self.model, latency_ms)

        return LLMResponse(content=content, model=self.model)
