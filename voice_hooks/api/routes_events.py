from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from voice_hooks.core.broadcast import event_stream
from voice_hooks.core.context import VoiceContext, get_context

router = APIRouter(prefix="/api", tags=["events"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


@router.get("/events")
@router.get("/tts-events")
async def events(request: Request, ctx: VoiceContext = Depends(get_context)) -> StreamingResponse:
    """Live conversation events as Server-Sent Events."""
    stream = event_stream(ctx.hub, request.is_disconnected, heartbeat=ctx.settings.sse_heartbeat_sec)
    return StreamingResponse(stream, media_type="text/event-stream", headers=SSE_HEADERS)
