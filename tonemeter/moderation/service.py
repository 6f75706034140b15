"""Moderation orchestration: quota, strategy chain, audit trail.

The daily quota is derived from the moderation log itself (entries since
00:00 UTC), so several service instances sharing one log agree on it.  The
count is read without locking; two concurrent requests at the boundary can
both pass, which lets an author exceed the cap by one.  That is accepted for
family messaging volumes.

Quota enforcement is opt-out per call.  The HTTP analyze endpoint enforces
it; internal callers such as message intake evaluate without it and without
logging, so a pre-flight check followed by the actual send costs the author
a single unit of quota.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Callable, Optional, Sequence

from tonemeter.config import DEFAULT_DAILY_QUOTA
from tonemeter.moderation.gateway import ClassifierGateway
from tonemeter.moderation.heuristics import HeuristicAnalyzer
from tonemeter.moderation.log_store import ModerationLogStore
from tonemeter.moderation.models import (
    ModerationLogEntry,
    ModerationVerdict,
    QuotaExceeded,
    QuotaStatus,
)
from tonemeter.moderation.strategies import (
    ClassifierStrategy,
    EvaluationStrategy,
    HeuristicStrategy,
)

logger = logging.getLogger(__name__)

SAFE_DEFAULT_VERDICT = ModerationVerdict()


def utc_day_start(now: float) -> int:
    """Unix timestamp of 00:00 UTC on the day containing *now*."""
    day = datetime.fromtimestamp(now, timezone.utc).replace(
        hour=0, minute=0, second=0, microsecond=0
    )
    return int(day.timestamp())


class ModerationService:
    """Evaluate message tone with graceful degradation.

    Strategies are tried in order; the first verdict wins.  By default the
    chain is the external classifier followed by the heuristic analyzer.
    """

    def __init__(
        self,
        log_store: ModerationLogStore,
        gateway: Optional[ClassifierGateway] = None,
        analyzer: Optional[HeuristicAnalyzer] = None,
        strategies: Optional[Sequence[EvaluationStrategy]] = None,
        daily_quota: int = DEFAULT_DAILY_QUOTA,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.log_store = log_store
        self.daily_quota = daily_quota
        self._clock = clock
        if strategies is None:
            strategies = [
                ClassifierStrategy(gateway or ClassifierGateway()),
                HeuristicStrategy(analyzer),
            ]
        self.strategies = list(strategies)

    # -- quota ---------------------------------------------------------------

    def quota_status(self, author_id: str) -> QuotaStatus:
        since = utc_day_start(self._clock())
        return QuotaStatus(
            used=self.log_store.count_since(author_id, since),
            limit=self.daily_quota,
        )

    def check_quota(self, author_id: str) -> QuotaStatus:
        """Raise :class:`QuotaExceeded` if *author_id* is at today's cap."""
        status = self.quota_status(author_id)
        if status.exhausted:
            logger.info(
                "quota exhausted for %s (%d/%d)", author_id, status.used, status.limit
            )
            raise QuotaExceeded(author_id, status.limit, status.used)
        return status

    # -- evaluation ----------------------------------------------------------

    def _run_strategies(self, text: str) -> tuple[ModerationVerdict, str]:
        for strategy in self.strategies:
            try:
                verdict = strategy.try_evaluate(text)
            except Exception:
                logger.exception("strategy %s crashed; trying next", strategy.name)
                continue
            if verdict is not None:
                return verdict, strategy.name
        logger.error("no moderation strategy produced a verdict; using default")
        return SAFE_DEFAULT_VERDICT, "default"

    def _record(self, entry: ModerationLogEntry) -> None:
        try:
            self.log_store.insert(entry)
        except Exception:
            logger.exception("could not persist moderation log entry %s", entry.id)

    def evaluate(
        self,
        text: str,
        author_id: str,
        suppress_logging: bool = False,
        *,
        enforce_quota: bool = True,
        message_id: Optional[str] = None,
    ) -> ModerationVerdict:
        """Moderate *text* written by *author_id* and return the verdict.

        Only :class:`QuotaExceeded` is raised.  Classifier faults fall back
        to the heuristic analyzer and log persistence failures are logged and
        ignored.
        """
        if enforce_quota:
            self.check_quota(author_id)

        verdict, source = self._run_strategies(text)
        logger.debug(
            "verdict for %s via %s: issues=%s intoxication=%s score=%d",
            author_id,
            source,
            verdict.has_issues,
            verdict.is_intoxication_suspected,
            verdict.tone_score,
        )

        if not suppress_logging:
            entry = ModerationLogEntry.from_verdict(
                verdict, author_id, text, source=source, message_id=message_id
            )
            entry.created_at = int(self._clock())
            self._record(entry)

        return verdict
