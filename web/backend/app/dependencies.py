"""Shared service singletons, exposed as FastAPI dependencies.

Tests replace these through ``app.dependency_overrides``.
"""

from __future__ import annotations

from functools import lru_cache

from tonemeter.auth.store import UserStore
from tonemeter.config import Settings, load_settings
from tonemeter.llm.client import LLMClient
from tonemeter.messages.intake import MessageIntake
from tonemeter.messages.store import MessageStore
from tonemeter.moderation.gateway import ClassifierGateway
from tonemeter.moderation.heuristics import HeuristicAnalyzer
from tonemeter.moderation.log_store import ModerationLogStore
from tonemeter.moderation.service import ModerationService
from tonemeter.security.audit_log import AuditLogger


@lru_cache
def get_settings() -> Settings:
    return load_settings()


@lru_cache
def get_user_store() -> UserStore:
    return UserStore(get_settings().auth_dir)


@lru_cache
def get_message_store() -> MessageStore:
    return MessageStore(get_settings().messages_dir)


@lru_cache
def get_audit_logger() -> AuditLogger:
    return AuditLogger(get_settings().audit_dir)


@lru_cache
def get_moderation_service() -> ModerationService:
    settings = get_settings()
    client = LLMClient(
        model=settings.classifier_model,
        api_key=settings.anthropic_api_key or None,
        timeout=settings.classifier_timeout,
    )
    return ModerationService(
        log_store=ModerationLogStore(settings.moderation_dir),
        gateway=ClassifierGateway(client, timeout=settings.classifier_timeout),
        analyzer=HeuristicAnalyzer(extra_terms=settings.aggressive_terms),
        daily_quota=settings.daily_quota,
    )


@lru_cache
def get_message_intake() -> MessageIntake:
    return MessageIntake(
        moderation=get_moderation_service(),
        messages=get_message_store(),
        users=get_user_store(),
        audit=get_audit_logger(),
    )
