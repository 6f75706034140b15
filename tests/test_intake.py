"""Tests for moderated message intake."""

import tempfile
from pathlib import Path

import pytest

from tonemeter.auth.models import Role
from tonemeter.auth.store import UserStore
from tonemeter.messages.intake import (
    EmptyContent,
    InvalidChannel,
    MessageIntake,
    MessageRejected,
    NotFamilyMember,
    SendNotAllowed,
)
from tonemeter.messages.store import MessageStore
from tonemeter.moderation.gateway import ClassifierGateway
from tonemeter.moderation.log_store import ModerationLogStore
from tonemeter.moderation.models import ModerationVerdict
from tonemeter.moderation.service import ModerationService
from tonemeter.security.audit_log import AuditLogger


class FixedStrategy:
    name = "fixed"

    def __init__(self, verdict):
        self.verdict = verdict

    def try_evaluate(self, text):
        return self.verdict


class ExplodingService(ModerationService):
    def evaluate(self, *args, **kwargs):
        raise RuntimeError("moderation backend down")


def _setup(tmpdir, service=None):
    base = Path(tmpdir)
    users = UserStore(base / "auth")
    users.add_member("fam", "mom", Role.parent)
    users.add_member("fam", "kid", Role.child)
    users.add_member("fam", "lawyer", Role.professional)
    messages = MessageStore(base / "messages")
    service = service or ModerationService(
        log_store=ModerationLogStore(base / "moderation"),
        gateway=ClassifierGateway(None),
    )
    audit = AuditLogger(base / "audit")
    intake = MessageIntake(service, messages, users, audit)
    return intake, messages, audit


def _fixed_service(tmpdir, verdict):
    return ModerationService(
        log_store=ModerationLogStore(Path(tmpdir) / "moderation"),
        strategies=[FixedStrategy(verdict)],
    )


def test_clean_parent_message_is_stored_and_audited():
    with tempfile.TemporaryDirectory() as tmpdir:
        intake, messages, audit = _setup(tmpdir)
        result = intake.submit("mom", "fam", "school", "¿Podés confirmarme el horario de retiro del viernes?")
        assert result.moderated
        assert result.verdict.is_clean
        assert messages.list_messages("fam", "school")[0].id == result.message.id

        [event] = audit.get_events(action="message_sent")
        assert event.entity_id == result.message.id
        assert event.details["contentHash"] == result.message.content_hash


def test_flagged_parent_message_is_not_stored():
    with tempfile.TemporaryDirectory() as tmpdir:
        intake, messages, audit = _setup(tmpdir)
        with pytest.raises(MessageRejected) as excinfo:
            intake.submit("mom", "fam", "daily", "IDIOTA!!!! nunca haces nada bien!!!!")
        assert excinfo.value.verdict.has_issues
        assert excinfo.value.verdict.suggestion
        assert messages.list_messages("fam", "daily") == []
        assert audit.get_events() == []


@pytest.mark.parametrize(
    "verdict, stored",
    [
        (ModerationVerdict(has_issues=False, is_intoxication_suspected=False), True),
        (ModerationVerdict(has_issues=True, is_intoxication_suspected=False), False),
        (ModerationVerdict(has_issues=False, is_intoxication_suspected=True), False),
        (ModerationVerdict(has_issues=True, is_intoxication_suspected=True), False),
    ],
)
def test_only_clean_verdicts_are_persisted(verdict, stored):
    with tempfile.TemporaryDirectory() as tmpdir:
        intake, messages, _ = _setup(tmpdir, _fixed_service(tmpdir, verdict))
        try:
            intake.submit("mom", "fam", "daily", "texto")
        except MessageRejected:
            pass
        assert len(messages.list_messages("fam", "daily")) == (1 if stored else 0)


def test_moderation_crash_stores_message_unmoderated():
    with tempfile.TemporaryDirectory() as tmpdir:
        service = ExplodingService(log_store=ModerationLogStore(Path(tmpdir) / "moderation"))
        intake, messages, _ = _setup(tmpdir, service)
        result = intake.submit("mom", "fam", "daily", "sos un idiota")
        assert not result.moderated
        assert len(messages.list_messages("fam", "daily")) == 1


def test_intake_does_not_log_or_spend_quota_but_links_preflight_entry():
    with tempfile.TemporaryDirectory() as tmpdir:
        intake, _, _ = _setup(tmpdir)
        service = intake.moderation
        service.evaluate("¿Llevo a los chicos a las cinco?", "mom")

        result = intake.submit("mom", "fam", "daily", "¿Llevo a los chicos a las cinco?")

        entries = service.log_store.list_entries("mom")
        assert len(entries) == 1
        assert entries[0].message_id == result.message.id


def test_second_send_without_preflight_keeps_first_link():
    with tempfile.TemporaryDirectory() as tmpdir:
        intake, _, _ = _setup(tmpdir)
        service = intake.moderation
        service.evaluate("Hola, ¿todo bien?", "mom")

        first = intake.submit("mom", "fam", "daily", "Hola, ¿todo bien?")
        intake.submit("mom", "fam", "daily", "Gracias, nos vemos el lunes.")

        [entry] = service.log_store.list_entries("mom")
        assert entry.message_id == first.message.id


def test_failed_log_link_does_not_block_delivery():
    class BrokenLinkStore(ModerationLogStore):
        def attach_message_to_latest(self, author_id, message_id):
            raise OSError("locked")

    with tempfile.TemporaryDirectory() as tmpdir:
        service = ModerationService(
            log_store=BrokenLinkStore(Path(tmpdir) / "moderation"),
            gateway=ClassifierGateway(None),
        )
        intake, messages, _ = _setup(tmpdir, service)
        intake.submit("mom", "fam", "daily", "Hola, ¿todo bien?")
        assert len(messages.list_messages("fam", "daily")) == 1


def test_child_messages_skip_moderation():
    with tempfile.TemporaryDirectory() as tmpdir:
        intake, messages, _ = _setup(tmpdir)
        result = intake.submit("kid", "fam", "daily", "NUNCA me dejan jugar!!!!")
        assert not result.moderated
        assert len(messages.list_messages("fam", "daily")) == 1


def test_professional_cannot_send():
    with tempfile.TemporaryDirectory() as tmpdir:
        intake, _, _ = _setup(tmpdir)
        with pytest.raises(SendNotAllowed):
            intake.submit("lawyer", "fam", "daily", "Hola")


def test_validation_errors():
    with tempfile.TemporaryDirectory() as tmpdir:
        intake, _, _ = _setup(tmpdir)
        with pytest.raises(InvalidChannel):
            intake.submit("mom", "fam", "random", "Hola")
        with pytest.raises(NotFamilyMember):
            intake.submit("stranger", "fam", "daily", "Hola")
        with pytest.raises(EmptyContent):
            intake.submit("mom", "fam", "daily", "   ")


def test_content_is_sanitized():
    with tempfile.TemporaryDirectory() as tmpdir:
        intake, _, _ = _setup(tmpdir)
        result = intake.submit(
            "mom", "fam", "health",
            '<p onclick="x()">Turno con el pediatra</p><script>alert(1)</script><img src=x>',
        )
        assert result.message.content == "<p>Turno con el pediatra</p>"
