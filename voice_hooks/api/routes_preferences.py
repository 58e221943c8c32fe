from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field, StrictBool

from voice_hooks.core.context import VoiceContext, get_context

router = APIRouter(prefix="/api", tags=["preferences"])


class VoiceInputState(BaseModel):
    active: StrictBool


class VoiceResponsesToggle(BaseModel):
    enabled: StrictBool


class VoicePreferencesUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    voice_responses_enabled: StrictBool = Field(alias="voiceResponsesEnabled")


@router.get("/voice-preferences")
async def get_voice_preferences(ctx: VoiceContext = Depends(get_context)) -> dict[str, bool]:
    return ctx.preferences.snapshot()


@router.post("/voice-input-state")
async def set_voice_input_state(payload: VoiceInputState, ctx: VoiceContext = Depends(get_context)) -> dict[str, Any]:
    ctx.preferences.set_voice_input_active(payload.active)
    return {"success": True, "voiceInputActive": payload.active}


@router.post("/voice-preferences")
async def set_voice_preferences(payload: VoicePreferencesUpdate, ctx: VoiceContext = Depends(get_context)) -> dict[str, Any]:
    ctx.preferences.set_voice_responses_enabled(payload.voice_responses_enabled)
    return {"success": True, "preferences": ctx.preferences.snapshot()}


# Older clients
@router.post("/voice-input")
async def set_voice_input_legacy(payload: VoiceInputState, ctx: VoiceContext = Depends(get_context)) -> dict[str, Any]:
    ctx.preferences.set_voice_input_active(payload.active)
    return {"success": True}


@router.post("/voice-responses")
async def set_voice_responses_legacy(payload: VoiceResponsesToggle, ctx: VoiceContext = Depends(get_context)) -> dict[str, Any]:
    ctx.preferences.set_voice_responses_enabled(payload.enabled)
    return {"success": True}
