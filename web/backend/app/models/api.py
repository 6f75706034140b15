"""Pydantic models for API request/response serialization.

These models mirror the tonemeter dataclasses.  Field names are snake_case in
Python and camelCase on the wire.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Tone moderation models
# ---------------------------------------------------------------------------


class VerdictResponse(_ApiModel):
    """Mirrors tonemeter.moderation.models.ModerationVerdict."""

    has_issues: bool = False
    is_intoxication_suspected: bool = False
    issues: list[str] = Field(default_factory=list)
    suggestion: str = ""
    tone_score: int = 50


class AnalyzeRequest(_ApiModel):
    """Request body for a pre-flight tone analysis."""

    content: str = ""
    message_id: Optional[str] = None


class AnalyzeResponse(_ApiModel):
    success: bool = True
    analysis: VerdictResponse


class QuotaResponse(_ApiModel):
    """Mirrors tonemeter.moderation.models.QuotaStatus."""

    used: int
    limit: int
    remaining: int


class ModerationLogResponse(_ApiModel):
    """Mirrors tonemeter.moderation.models.ModerationLogEntry."""

    id: str
    message_id: Optional[str] = None
    original_content: str
    has_issues: bool
    issues: list[str] = Field(default_factory=list)
    suggestion: str = ""
    is_intoxication_suspected: bool = False
    tone_score: int = 50
    source: str = ""
    created_at: int


# ---------------------------------------------------------------------------
# Message models
# ---------------------------------------------------------------------------


class CreateMessageRequest(_ApiModel):
    content: str = ""
    share_with_child: bool = False
    attachments: list[Any] = Field(default_factory=list)


class MessageResponse(_ApiModel):
    """Mirrors tonemeter.messages.models.Message."""

    id: str
    channel: str
    sender_id: str
    content: str
    attachments: Optional[list[Any]] = None
    share_with_child: bool = False
    created_at: int
    sent_at: int
    delivered_at: Optional[int] = None
    read_at: Optional[int] = None
    is_read: bool = False


class CreateMessageResponse(_ApiModel):
    success: bool = True
    message: MessageResponse


class MessageListResponse(_ApiModel):
    messages: list[MessageResponse] = Field(default_factory=list)


class MarkReadResponse(_ApiModel):
    success: bool = True
    read_at: Optional[int] = None
    message: str = ""
