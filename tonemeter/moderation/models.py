"""Data models for the tone moderation pipeline."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Optional

DEFAULT_TONE_SCORE = 50
CLEAN_TONE_SCORE = 80
FLAGGED_TONE_SCORE = 30


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class ModerationError(Exception):
    """Base class for moderation failures."""


class QuotaExceeded(ModerationError):
    """The author has used up today's analysis quota."""

    def __init__(self, author_id: str, limit: int, used: int) -> None:
        self.author_id = author_id
        self.limit = limit
        self.used = used
        super().__init__(f"Límite diario de análisis alcanzado ({limit} por día)")


class NormalizationError(ModerationError):
    """A classifier response could not be turned into a verdict."""


# ---------------------------------------------------------------------------
# Verdicts
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class HeuristicResult:
    """Output of the rule-based analyzer (no tone score, no intoxication flag)."""

    has_issues: bool
    issues: tuple[str, ...] = ()
    suggestion: str = ""


@dataclass(frozen=True)
class ModerationVerdict:
    """Outcome of one moderation evaluation."""

    has_issues: bool = False
    issues: tuple[str, ...] = ()
    suggestion: str = ""
    is_intoxication_suspected: bool = False
    tone_score: int = DEFAULT_TONE_SCORE

    @property
    def is_clean(self) -> bool:
        """True when the message may be delivered."""
        return not (self.has_issues or self.is_intoxication_suspected)

    @classmethod
    def from_heuristic(cls, result: HeuristicResult) -> "ModerationVerdict":
        return cls(
            has_issues=result.has_issues,
            issues=tuple(result.issues),
            suggestion=result.suggestion,
            is_intoxication_suspected=False,
            tone_score=FLAGGED_TONE_SCORE if result.has_issues else CLEAN_TONE_SCORE,
        )

    def to_dict(self) -> dict[str, Any]:
        """Client-facing JSON shape."""
        return {
            "hasIssues": self.has_issues,
            "isIntoxicationSuspected": self.is_intoxication_suspected,
            "issues": list(self.issues),
            "suggestion": self.suggestion,
            "toneScore": self.tone_score,
        }


# ---------------------------------------------------------------------------
# Audit log
# ---------------------------------------------------------------------------


@dataclass
class ModerationLogEntry:
    """One persisted evaluation.  ``message_id`` may be linked after the fact."""

    author_id: str
    original_content: str
    has_issues: bool = False
    issues: list[str] = field(default_factory=list)
    suggestion: str = ""
    is_intoxication_suspected: bool = False
    tone_score: int = DEFAULT_TONE_SCORE
    source: str = ""  # "classifier" | "heuristic" | "default"
    message_id: Optional[str] = None
    id: str = ""
    created_at: int = 0

    def __post_init__(self) -> None:
        if not self.id:
            self.id = uuid.uuid4().hex
        if not self.created_at:
            self.created_at = int(time.time())

    @classmethod
    def from_verdict(
        cls,
        verdict: ModerationVerdict,
        author_id: str,
        content: str,
        source: str = "",
        message_id: Optional[str] = None,
    ) -> "ModerationLogEntry":
        return cls(
            author_id=author_id,
            original_content=content,
            has_issues=verdict.has_issues,
            issues=list(verdict.issues),
            suggestion=verdict.suggestion,
            is_intoxication_suspected=verdict.is_intoxication_suspected,
            tone_score=verdict.tone_score,
            source=source,
            message_id=message_id,
        )


@dataclass
class QuotaStatus:
    """Snapshot of an author's daily analysis quota."""

    used: int
    limit: int

    @property
    def remaining(self) -> int:
        return max(self.limit - self.used, 0)

    @property
    def exhausted(self) -> bool:
        return self.used >= self.limit
