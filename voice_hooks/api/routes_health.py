from __future__ import annotations

from datetime import datetime, timezone
from importlib.metadata import PackageNotFoundError, version

from fastapi import APIRouter, Depends

from voice_hooks.core.context import VoiceContext, get_context

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def get_health(ctx: VoiceContext = Depends(get_context)) -> dict[str, object]:
    """Server status with a snapshot of the queue and live observers."""
    try:
        pkg_version = version("voice-hooks")
    except PackageNotFoundError:  # pragma: no cover - depends on installation
        pkg_version = "unknown"

    return {
        "status": "ok",
        "version": pkg_version,
        "time": datetime.now(timezone.utc).isoformat(),
        "queue": ctx.store.counts().to_dict(),
        "preferences": ctx.preferences.snapshot(),
        "subscribers": ctx.hub.subscriber_count,
    }
