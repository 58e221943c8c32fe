from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query
from pydantic import BaseModel, Field

from voice_hooks.core.context import VoiceContext, get_context
from voice_hooks.core.delivery import deliver_pending, wait_for_pending
from voice_hooks.core.errors import PreconditionFailed

router = APIRouter(prefix="/api", tags=["utterances"])


class UtteranceCreate(BaseModel):
    text: Optional[str] = None
    timestamp: Optional[datetime] = None


class WaitRequest(BaseModel):
    timeout: Optional[float] = Field(default=None, allow_inf_nan=False)


@router.post("/utterances")
@router.post("/potential-utterances")
async def create_utterance(payload: UtteranceCreate, ctx: VoiceContext = Depends(get_context)) -> dict[str, Any]:
    utterance = ctx.store.ingest(payload.text, payload.timestamp)
    return {"success": True, "utterance": utterance.to_dict()}


@router.get("/utterances")
async def list_utterances(
    limit: int = Query(10, ge=1, le=1000),
    ctx: VoiceContext = Depends(get_context),
) -> dict[str, Any]:
    return {"utterances": [u.to_dict() for u in ctx.store.recent_utterances(limit)]}


@router.get("/utterances/status")
async def utterance_status(ctx: VoiceContext = Depends(get_context)) -> dict[str, int]:
    return ctx.store.counts().to_dict()


@router.get("/conversation")
async def conversation(
    limit: int = Query(50, ge=1, le=1000),
    ctx: VoiceContext = Depends(get_context),
) -> dict[str, Any]:
    return {"messages": [m.to_dict() for m in ctx.store.recent_messages(limit)]}


@router.post("/dequeue-utterances")
async def dequeue_utterances(ctx: VoiceContext = Depends(get_context)) -> dict[str, Any]:
    # Typed and spoken messages are both dequeued, whatever the voice input state.
    delivered = deliver_pending(ctx.store, newest_first=True)
    return {
        "success": True,
        "utterances": [{"id": u.id, "text": u.text, "timestamp": u.timestamp.isoformat()} for u in delivered],
    }


@router.post("/wait-for-utterances")
async def wait_for_utterances(
    payload: Optional[WaitRequest] = Body(default=None),
    ctx: VoiceContext = Depends(get_context),
) -> dict[str, Any]:
    settings = ctx.settings
    timeout = payload.timeout if payload and payload.timeout is not None else settings.wait_timeout_sec
    timeout = min(max(timeout, 0.0), settings.wait_max_timeout_sec)
    result = await wait_for_pending(ctx, timeout, settings.wait_poll_interval_sec)
    response: dict[str, Any] = {
        "success": True,
        "utterances": [u.to_dict() for u in result.utterances],
        "count": len(result.utterances),
        "waitTime": round(result.waited_sec * 1000),
    }
    if result.timed_out:
        response["message"] = "Timeout waiting for utterances"
    elif result.interrupted:
        response["message"] = "Voice input was deactivated while waiting"
    return response


@router.delete("/utterances/{utterance_id}")
async def delete_utterance(utterance_id: str, ctx: VoiceContext = Depends(get_context)) -> dict[str, Any]:
    if not ctx.store.delete(utterance_id):
        raise PreconditionFailed("Only pending messages can be deleted")
    return {"success": True, "message": "Message deleted"}


@router.delete("/utterances")
async def clear_utterances(ctx: VoiceContext = Depends(get_context)) -> dict[str, Any]:
    cleared = ctx.store.clear()
    return {"success": True, "message": f"Cleared {cleared} utterances", "clearedCount": cleared}
