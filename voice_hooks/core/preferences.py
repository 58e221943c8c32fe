from __future__ import annotations

from dataclasses import dataclass


@dataclass
class VoicePreferences:
    """Process-wide voice switches; both start off."""

    voice_input_active: bool = False
    voice_responses_enabled: bool = False

    def set_voice_input_active(self, active: bool) -> None:
        self.voice_input_active = active

    def set_voice_responses_enabled(self, enabled: bool) -> None:
        self.voice_responses_enabled = enabled

    def snapshot(self) -> dict[str, bool]:
        return {
            "voiceInputActive": self.voice_input_active,
            "voiceResponsesEnabled": self.voice_responses_enabled,
        }

    def reset(self) -> None:
        self.voice_input_active = False
        self.voice_responses_enabled = False
