"""Data models and content helpers for family messages."""

from __future__ import annotations

import hashlib
import re
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Optional

CHANNELS: tuple[str, ...] = ("daily", "health", "school", "calendar", "vacation")

ALLOWED_TAGS = {"p", "br", "strong", "em", "u", "ul", "ol", "li"}

_SCRIPT_RE = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_EVENT_ATTR_RE = re.compile(r"""\son\w+\s*=\s*(?:"[^"]*"|'[^']*')""", re.IGNORECASE)
_TAG_RE = re.compile(r"</?([a-z][a-z0-9]*)\b[^>]*>", re.IGNORECASE)


def is_valid_channel(channel: str) -> bool:
    return channel in CHANNELS


def sanitize_html(content: str) -> str:
    """Strip scripts, inline event handlers and non-whitelisted tags."""
    sanitized = _SCRIPT_RE.sub("", content)
    sanitized = _EVENT_ATTR_RE.sub("", sanitized)
    return _TAG_RE.sub(
        lambda m: m.group(0) if m.group(1).lower() in ALLOWED_TAGS else "",
        sanitized,
    )


def content_hash(content: str) -> str:
    """SHA-256 hex digest used to prove a message was not altered."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


@dataclass
class Message:
    """A message posted to a family channel."""

    family_id: str
    channel: str
    sender_id: str
    content: str
    content_hash: str = ""
    attachments: list[Any] = field(default_factory=list)
    share_with_child: bool = False
    id: str = ""
    created_at: int = 0
    sent_at: int = 0
    delivered_at: Optional[int] = None

    def __post_init__(self) -> None:
        if not self.id:
            self.id = str(uuid.uuid4())
        if not self.created_at:
            self.created_at = int(time.time())
        if not self.sent_at:
            self.sent_at = self.created_at
        if not self.content_hash:
            self.content_hash = content_hash(self.content)


@dataclass
class MessageRead:
    """First time a member viewed a message."""

    message_id: str
    user_id: str
    first_viewed_at: int = 0
    id: str = ""

    def __post_init__(self) -> None:
        if not self.id:
            self.id = str(uuid.uuid4())
        if not self.first_viewed_at:
            self.first_viewed_at = int(time.time())
