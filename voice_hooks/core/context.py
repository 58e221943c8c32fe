from __future__ import annotations

from typing import Optional

from fastapi import Request

from voice_hooks.core.broadcast import BroadcastHub
from voice_hooks.core.config import Settings, get_settings
from voice_hooks.core.conversation import ConversationStore
from voice_hooks.core.preferences import VoicePreferences
from voice_hooks.core.speech import Speaker


class VoiceContext:
    """Everything one running server owns: queue, preferences, observers, voice."""

    def __init__(self, settings: Optional[Settings] = None, speaker: Optional[Speaker] = None) -> None:
        self.settings = settings or get_settings()
        self.hub = BroadcastHub(buffer_size=self.settings.event_buffer_size)
        self.store = ConversationStore(publish=self.hub.publish)
        self.preferences = VoicePreferences()
        self.speaker = speaker or Speaker(
            command=self.settings.tts_command,
            rate_flag=self.settings.tts_rate_flag,
            timeout=self.settings.tts_timeout_sec,
        )

    def reset(self) -> None:
        """Empty the queue and restore default preferences. Observers stay subscribed."""
        self.store.clear()
        self.preferences.reset()


def get_context(request: Request) -> VoiceContext:
    """FastAPI dependency returning the context owned by the running app."""
    return request.app.state.voice
