"""Tone moderation for parent-authored messages."""

from tonemeter.moderation.models import (
    ModerationError,
    ModerationLogEntry,
    ModerationVerdict,
    NormalizationError,
    QuotaExceeded,
)
from tonemeter.moderation.service import ModerationService

__all__ = [
    "ModerationError",
    "ModerationLogEntry",
    "ModerationService",
    "ModerationVerdict",
    "NormalizationError",
    "QuotaExceeded",
]
