"""Evaluation strategies, tried in order by :class:`ModerationService`.

Each strategy exposes ``try_evaluate(text)`` returning a verdict, or
``None`` when it cannot produce one and the next strategy should run.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from tonemeter.moderation.gateway import ClassifierGateway
from tonemeter.moderation.heuristics import HeuristicAnalyzer
from tonemeter.moderation.models import ModerationVerdict, NormalizationError
from tonemeter.moderation.normalizer import normalize

logger = logging.getLogger(__name__)


class EvaluationStrategy(Protocol):
    name: str

    def try_evaluate(self, text: str) -> Optional[ModerationVerdict]: ...


class ClassifierStrategy:
    """External classifier, normalized."""

    name = "classifier"

    def __init__(self, gateway: ClassifierGateway) -> None:
        self.gateway = gateway

    def try_evaluate(self, text: str) -> Optional[ModerationVerdict]:
        raw = self.gateway.classify(text)
        if raw is None:
            return None
        try:
            return normalize(raw)
        except NormalizationError as exc:
            logger.warning("discarding classifier output: %s", exc)
            return None


class HeuristicStrategy:
    """Rule-based fallback.  Always produces a verdict."""

    name = "heuristic"

    def __init__(self, analyzer: Optional[HeuristicAnalyzer] = None) -> None:
        self.analyzer = analyzer or HeuristicAnalyzer()

    def try_evaluate(self, text: str) -> Optional[ModerationVerdict]:
        return ModerationVerdict.from_heuristic(self.analyzer.analyze(text))
