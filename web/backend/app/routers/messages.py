"""Family messaging router.

Provides endpoints for listing channel messages, sending a message through
tone moderation, and recording read receipts.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from starlette.concurrency import run_in_threadpool

from tonemeter.auth.models import Role, User
from tonemeter.auth.store import UserStore
from tonemeter.messages.intake import IntakeError, MessageIntake, MessageRejected
from tonemeter.messages.models import Message, is_valid_channel
from tonemeter.messages.store import MessageStore
from web.backend.app.dependencies import get_message_intake, get_message_store, get_user_store
from web.backend.app.middleware.auth import get_current_user
from web.backend.app.models.api import (
    CreateMessageRequest,
    CreateMessageResponse,
    MarkReadResponse,
    MessageListResponse,
    MessageResponse,
)
from web.backend.app.routers.ai_coach import verdict_response

router = APIRouter(prefix="/api", tags=["messages"])


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else ""


def _message_response(message: Message, read_at: Optional[int] = None) -> MessageResponse:
    return MessageResponse(
        id=message.id,
        channel=message.channel,
        sender_id=message.sender_id,
        content=message.content,
        attachments=message.attachments or None,
        share_with_child=message.share_with_child,
        created_at=message.created_at,
        sent_at=message.sent_at,
        delivered_at=message.delivered_at,
        read_at=read_at,
        is_read=read_at is not None,
    )


@router.get("/families/{family_id}/messages/{channel}", response_model=MessageListResponse)
async def list_messages(
    family_id: str,
    channel: str,
    user: User = Depends(get_current_user),
    users: UserStore = Depends(get_user_store),
    store: MessageStore = Depends(get_message_store),
):
    """List the latest 100 messages of a channel.  Children only see shared ones."""
    if not is_valid_channel(channel):
        raise HTTPException(status_code=400, detail={"error": "Invalid channel"})

    member = users.get_member(family_id, user.id)
    if member is None:
        raise HTTPException(status_code=404, detail={"error": "Family not found or access denied"})

    messages = store.list_messages(
        family_id,
        channel,
        shared_with_child_only=member.role == Role.child,
    )
    reads = store.reads_for(user.id)
    return MessageListResponse(
        messages=[_message_response(m, reads.get(m.id)) for m in messages]
    )


@router.post(
    "/families/{family_id}/messages/{channel}",
    response_model=CreateMessageResponse,
    status_code=201,
)
async def create_message(
    family_id: str,
    channel: str,
    req: CreateMessageRequest,
    request: Request,
    user: User = Depends(get_current_user),
    intake: MessageIntake = Depends(get_message_intake),
):
    """Send a message.  Parent messages are moderated before they are stored."""
    try:
        result = await run_in_threadpool(
            intake.submit,
            user.id,
            family_id,
            channel,
            req.content,
            share_with_child=req.share_with_child,
            attachments=req.attachments,
            ip_address=_client_ip(request),
            user_agent=request.headers.get("User-Agent", ""),
        )
    except MessageRejected as exc:
        analysis = verdict_response(exc.verdict).model_dump(by_alias=True)
        raise HTTPException(
            status_code=exc.status_code,
            detail={"error": exc.message, "analysis": analysis},
        ) from exc
    except IntakeError as exc:
        raise HTTPException(status_code=exc.status_code, detail={"error": exc.message}) from exc

    return CreateMessageResponse(success=True, message=_message_response(result.message))


@router.post("/messages/{message_id}/read", response_model=MarkReadResponse)
async def mark_as_read(
    message_id: str,
    user: User = Depends(get_current_user),
    users: UserStore = Depends(get_user_store),
    store: MessageStore = Depends(get_message_store),
):
    """Record the first time the caller viewed a message."""
    message = store.get_message(message_id)
    if message is None:
        raise HTTPException(status_code=404, detail={"error": "Message not found"})

    if users.get_member(message.family_id, user.id) is None:
        raise HTTPException(status_code=403, detail={"error": "Access denied"})

    if message.sender_id == user.id:
        raise HTTPException(status_code=400, detail={"error": "Cannot mark own message as read"})

    if store.get_read(message_id, user.id) is not None:
        return MarkReadResponse(success=True, message="Already marked as read")

    receipt = store.mark_read(message_id, user.id)
    store.set_delivered(message, receipt.first_viewed_at)
    return MarkReadResponse(success=True, read_at=receipt.first_viewed_at)
