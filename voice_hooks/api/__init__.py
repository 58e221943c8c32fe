from __future__ import annotations

from .routes_actions import router as actions_router
from .routes_events import router as events_router
from .routes_health import router as health_router
from .routes_preferences import router as preferences_router
from .routes_speech import router as speech_router
from .routes_utterances import router as utterances_router

__all__ = [
    "health_router",
    "utterances_router",
    "speech_router",
    "preferences_router",
    "actions_router",
    "events_router",
]
