"""AI Coach router -- pre-flight tone analysis for parent messages.

The analyze endpoint is the quota-enforced, logged entry point into the
moderation service.  Message creation re-checks tone on its own (see the
messages router) without spending quota.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from starlette.concurrency import run_in_threadpool

from tonemeter.auth.models import User
from tonemeter.moderation.models import ModerationVerdict, QuotaExceeded
from tonemeter.moderation.service import ModerationService
from web.backend.app.dependencies import get_moderation_service
from web.backend.app.middleware.auth import get_current_user
from web.backend.app.models.api import (
    AnalyzeRequest,
    AnalyzeResponse,
    ModerationLogResponse,
    QuotaResponse,
    VerdictResponse,
)

router = APIRouter(prefix="/api/ai-coach", tags=["ai-coach"])


def verdict_response(verdict: ModerationVerdict) -> VerdictResponse:
    return VerdictResponse(
        has_issues=verdict.has_issues,
        is_intoxication_suspected=verdict.is_intoxication_suspected,
        issues=list(verdict.issues),
        suggestion=verdict.suggestion,
        tone_score=verdict.tone_score,
    )


@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze_tone(
    req: AnalyzeRequest,
    user: User = Depends(get_current_user),
    service: ModerationService = Depends(get_moderation_service),
):
    """Analyze the tone of a draft message.

    Returns 429 once the caller has used today's analysis quota.
    """
    if not req.content.strip():
        raise HTTPException(status_code=400, detail={"error": "Content required"})

    try:
        verdict = await run_in_threadpool(
            service.evaluate,
            req.content,
            user.id,
            False,
            message_id=req.message_id,
        )
    except QuotaExceeded as exc:
        raise HTTPException(
            status_code=429,
            detail={"error": str(exc), "limit": exc.limit, "used": exc.used},
        ) from exc

    return AnalyzeResponse(success=True, analysis=verdict_response(verdict))


@router.get("/quota", response_model=QuotaResponse)
async def get_quota(
    user: User = Depends(get_current_user),
    service: ModerationService = Depends(get_moderation_service),
):
    """Return today's analysis usage for the caller."""
    status = service.quota_status(user.id)
    return QuotaResponse(used=status.used, limit=status.limit, remaining=status.remaining)


@router.get("/logs", response_model=list[ModerationLogResponse])
async def get_logs(
    limit: int = Query(50, ge=1, le=200),
    user: User = Depends(get_current_user),
    service: ModerationService = Depends(get_moderation_service),
):
    """Return the caller's own moderation history, newest first."""
    entries = service.log_store.list_entries(author_id=user.id, limit=limit)
    return [
        ModerationLogResponse(
            id=e.id,
            message_id=e.message_id,
            original_content=e.original_content,
            has_issues=e.has_issues,
            issues=e.issues,
            suggestion=e.suggestion,
            is_intoxication_suspected=e.is_intoxication_suspected,
            tone_score=e.tone_score,
            source=e.source,
            created_at=e.created_at,
        )
        for e in entries
    ]
