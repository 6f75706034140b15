"""Message creation with synchronous tone moderation.

Parent-authored messages are moderated before anything is stored.  A
verdict with issues or suspected intoxication rejects the message.  A
moderation *failure* does not: the message is then stored unmoderated.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from tonemeter.auth.models import Role
from tonemeter.auth.store import UserStore
from tonemeter.messages.models import Message, is_valid_channel, sanitize_html
from tonemeter.messages.store import MessageStore
from tonemeter.moderation.models import ModerationVerdict
from tonemeter.moderation.service import ModerationService
from tonemeter.security.audit_log import AuditLogger

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class IntakeError(Exception):
    """A message could not be accepted.  ``status_code`` maps it to HTTP."""

    status_code = 400

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidChannel(IntakeError):
    status_code = 400


class EmptyContent(IntakeError):
    status_code = 400


class NotFamilyMember(IntakeError):
    status_code = 404


class SendNotAllowed(IntakeError):
    status_code = 403


class MessageRejected(IntakeError):
    """Moderation flagged the message; carries the verdict as feedback."""

    status_code = 400

    def __init__(self, verdict: ModerationVerdict) -> None:
        self.verdict = verdict
        super().__init__("El mensaje no fue enviado: revisá el tono antes de enviarlo")


# ---------------------------------------------------------------------------
# Intake
# ---------------------------------------------------------------------------


@dataclass
class IntakeResult:
    message: Message
    verdict: Optional[ModerationVerdict] = None

    @property
    def moderated(self) -> bool:
        return self.verdict is not None


class MessageIntake:
    """Validate, moderate, persist and audit a new family message."""

    def __init__(
        self,
        moderation: ModerationService,
        messages: MessageStore,
        users: UserStore,
        audit: Optional[AuditLogger] = None,
    ) -> None:
        self.moderation = moderation
        self.messages = messages
        self.users = users
        self.audit = audit

    def _moderate(self, content: str, author_id: str) -> Optional[ModerationVerdict]:
        try:
            return self.moderation.evaluate(
                content, author_id, suppress_logging=True, enforce_quota=False
            )
        except Exception:
            logger.exception("moderation failed for %s; storing message unmoderated", author_id)
            return None

    def _attach_log(self, author_id: str, message_id: str) -> None:
        try:
            self.moderation.log_store.attach_message_to_latest(author_id, message_id)
        except Exception as exc:
            logger.warning("could not link message %s to moderation log: %s", message_id, exc)

    def _audit_sent(self, message: Message, ip_address: str, user_agent: str) -> None:
        if self.audit is None:
            return
        try:
            self.audit.log_event(
                action="message_sent",
                entity_type="message",
                entity_id=message.id,
                user_id=message.sender_id,
                family_id=message.family_id,
                details={"channel": message.channel, "contentHash": message.content_hash},
                ip_address=ip_address,
                user_agent=user_agent,
            )
        except OSError:
            logger.exception("could not write audit event for message %s", message.id)

    def submit(
        self,
        author_id: str,
        family_id: str,
        channel: str,
        content: str,
        share_with_child: bool = False,
        attachments: Optional[list[Any]] = None,
        ip_address: str = "",
        user_agent: str = "",
    ) -> IntakeResult:
        """Create a message, or raise an :class:`IntakeError` subclass."""
        if not is_valid_channel(channel):
            raise InvalidChannel("Invalid channel")

        member = self.users.get_member(family_id, author_id)
        if member is None:
            raise NotFamilyMember("Family not found or access denied")
        if member.role == Role.professional:
            raise SendNotAllowed("Professionals cannot send messages")

        if not content or not content.strip():
            raise EmptyContent("Content required")

        verdict: Optional[ModerationVerdict] = None
        if member.role == Role.parent:
            verdict = self._moderate(content, author_id)
            if verdict is not None and not verdict.is_clean:
                logger.info("message from %s rejected by moderation", author_id)
                raise MessageRejected(verdict)

        message = Message(
            family_id=family_id,
            channel=channel,
            sender_id=author_id,
            content=sanitize_html(content),
            attachments=list(attachments or []),
            share_with_child=share_with_child,
        )
        message.delivered_at = message.sent_at
        self.messages.create_message(message)

        if member.role == Role.parent:
            self._attach_log(author_id, message.id)
        self._audit_sent(message, ip_address, user_agent)

        return IntakeResult(message=message, verdict=verdict)
