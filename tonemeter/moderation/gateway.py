"""Adapter between the moderation pipeline and an LLM tone classifier."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Any, Optional, Protocol

from tonemeter.llm.client import DEFAULT_TIMEOUT, LLMResponse
from tonemeter.llm.prompts import TONE_ANALYSIS_PROMPT, TONE_ANALYSIS_USER_PROMPT
from tonemeter.moderation.normalizer import extract_json_object

logger = logging.getLogger(__name__)


class CompletionBackend(Protocol):
    """Anything that can run a system + user completion (see ``LLMClient``)."""

    @property
    def configured(self) -> bool: ...

    def complete(self, prompt: str, system_prompt: str | None = None, **kwargs: Any) -> LLMResponse: ...


class ClassifierGateway:
    """Ask the external classifier for a verdict.

    :meth:`classify` returns the parsed JSON payload, or ``None`` when the
    classifier is unavailable: not configured, faulted, timed out, or
    answered with something that holds no JSON.  Errors never propagate.
    """

    def __init__(
        self,
        backend: Optional[CompletionBackend] = None,
        timeout: float = DEFAULT_TIMEOUT,
        max_workers: int = 4,
    ) -> None:
        self.backend = backend
        self.timeout = timeout
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="tone-classifier"
        )

    @property
    def available(self) -> bool:
        return self.backend is not None and bool(self.backend.configured)

    def _request(self, text: str) -> str:
        response = self.backend.complete(
            prompt=TONE_ANALYSIS_USER_PROMPT.format(content=text),
            system_prompt=TONE_ANALYSIS_PROMPT,
        )
        content = getattr(response, "content", response)
        return content if isinstance(content, str) else str(content)

    def classify(self, text: str) -> Optional[Any]:
        if not self.available:
            return None

        future = self._executor.submit(self._request, text)
        try:
            response_text = future.result(timeout=self.timeout)
        except FutureTimeout:
            future.cancel()
            logger.warning("tone classifier timed out after %.1fs", self.timeout)
            return None
        except Exception as exc:
            logger.warning("tone classifier failed: %s", exc, exc_info=True)
            return None

        parsed = extract_json_object(response_text)
        if parsed is None:
            logger.warning("tone classifier returned no JSON: %.120r", response_text)
        return parsed
