from __future__ import annotations

import os
import tempfile

_STATE_DIR = tempfile.mkdtemp(prefix="voice-hooks-tests-")
os.environ.setdefault("VOICE_HOOKS_LOG_DIR", os.path.join(_STATE_DIR, "logs"))
os.environ.setdefault("VOICE_HOOKS_AUDIT_LOG_PATH", os.path.join(_STATE_DIR, "audit.jsonl"))
os.environ.setdefault("VOICE_HOOKS_PUBLIC_DIR", os.path.join(_STATE_DIR, "public"))

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from voice_hooks.core.context import VoiceContext  # noqa: E402
from voice_hooks.core.errors import UpstreamFailure  # noqa: E402
from voice_hooks.core.speech import Speaker  # noqa: E402
from voice_hooks.main import create_app  # noqa: E402


class FakeSpeaker(Speaker):
    """Records what would have been spoken."""

    def __init__(self) -> None:
        super().__init__(command=["fake-tts"])
        self.spoken: list[tuple[str, int | None]] = []
        self.error: str | None = None

    async def speak(self, text: str, rate: int | None = None) -> None:
        if self.error is not None:
            raise UpstreamFailure(f"Failed to speak: {self.error}")
        self.spoken.append((text, rate))


@pytest.fixture
def speaker() -> FakeSpeaker:
    return FakeSpeaker()


@pytest.fixture
def ctx(speaker: FakeSpeaker) -> VoiceContext:
    return VoiceContext(speaker=speaker)


@pytest.fixture
def app(ctx: VoiceContext):
    return create_app(context=ctx)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)
