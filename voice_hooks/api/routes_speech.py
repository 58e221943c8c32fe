from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from voice_hooks.core.context import VoiceContext, get_context
from voice_hooks.core.delivery import speak_reply, speak_system

router = APIRouter(prefix="/api", tags=["speech"])


class SpeakRequest(BaseModel):
    text: Optional[str] = None


class SystemSpeakRequest(BaseModel):
    text: Optional[str] = None
    # Left untyped so a non-numeric rate gets the same 400 message as an out-of-range one.
    rate: Any = None


@router.post("/speak")
async def speak(payload: SpeakRequest, ctx: VoiceContext = Depends(get_context)) -> dict[str, Any]:
    responded = await speak_reply(ctx, payload.text)
    return {"success": True, "message": "Text spoken successfully", "respondedCount": responded}


@router.post("/speak-system")
async def speak_with_system_voice(payload: SystemSpeakRequest, ctx: VoiceContext = Depends(get_context)) -> dict[str, Any]:
    rate = ctx.settings.default_speech_rate if payload.rate is None else payload.rate
    await speak_system(ctx, payload.text, rate)
    return {"success": True, "message": "Text spoken successfully via system voice"}
