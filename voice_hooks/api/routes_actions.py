from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from voice_hooks.core import gate
from voice_hooks.core.context import VoiceContext, get_context

router = APIRouter(prefix="/api", tags=["actions"])


class ActionRequest(BaseModel):
    action: Optional[str] = None


@router.post("/validate-action")
async def validate_action(payload: ActionRequest, ctx: VoiceContext = Depends(get_context)) -> dict[str, Any]:
    action = gate.parse_action(payload.action)
    return gate.evaluate(action, ctx.store, ctx.preferences).to_dict()


@router.post("/hooks/stop")
async def stop_hook(ctx: VoiceContext = Depends(get_context)) -> dict[str, str]:
    return gate.evaluate_stop_hook(ctx.store, ctx.preferences)
