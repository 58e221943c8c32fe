"""Queue operations used by the assistant: dequeue, wait, speak."""

from __future__ import annotations

import asyncio
import math
from dataclasses import dataclass
from typing import Any, List, Optional

from voice_hooks.core.context import VoiceContext
from voice_hooks.core.conversation import ConversationStore, Utterance, UtteranceStatus
from voice_hooks.core.errors import PreconditionFailed, ValidationError
from voice_hooks.core.logger import get_logger

logger = get_logger("conversation")


@dataclass
class WaitResult:
    utterances: List[Utterance]
    waited_sec: float
    timed_out: bool
    interrupted: bool = False


def deliver_pending(store: ConversationStore, *, newest_first: bool = True) -> List[Utterance]:
    """Mark every pending utterance delivered and return them."""
    pending = store.with_status(UtteranceStatus.PENDING, newest_first=newest_first)
    for utterance in pending:
        store.mark_delivered(utterance.id)
    return pending


async def wait_for_pending(
    ctx: VoiceContext,
    timeout: float,
    poll_interval: float = 0.1,
) -> WaitResult:
    """Poll the queue until something is pending or ``timeout`` elapses.

    Nothing is modified until utterances are found, so cancelling the caller
    at any point is safe.
    """
    if not ctx.preferences.voice_input_active:
        raise PreconditionFailed(
            "Voice input is not active. Cannot wait for utterances when voice input is disabled."
        )
    if not math.isfinite(timeout):
        raise ValidationError("Timeout must be a finite number")
    loop = asyncio.get_running_loop()
    started = loop.time()
    deadline = started + max(timeout, 0.0)
    while True:
        if ctx.store.counts().pending > 0:
            found = deliver_pending(ctx.store, newest_first=False)
            return WaitResult(found, loop.time() - started, timed_out=False)
        if not ctx.preferences.voice_input_active:
            logger.info("Wait interrupted: voice input turned off")
            return WaitResult([], loop.time() - started, timed_out=False, interrupted=True)
        remaining = deadline - loop.time()
        if remaining <= 0:
            return WaitResult([], loop.time() - started, timed_out=True)
        await asyncio.sleep(min(poll_interval, remaining))


def _require_text(text: Optional[str]) -> str:
    cleaned = (text or "").strip()
    if not cleaned:
        raise ValidationError("Text is required")
    return cleaned


async def speak_reply(ctx: VoiceContext, text: Optional[str]) -> int:
    """Speak ``text``, record it, and mark delivered utterances responded."""
    cleaned = _require_text(text)
    if not ctx.preferences.voice_responses_enabled:
        raise PreconditionFailed(
            "Voice responses are disabled",
            details="Cannot speak when voice responses are disabled",
        )
    await ctx.speaker.speak(cleaned)
    ctx.store.append_assistant_reply(cleaned)
    delivered = ctx.store.with_status(UtteranceStatus.DELIVERED)
    for utterance in delivered:
        ctx.store.mark_responded(utterance.id)
    return len(delivered)


def validate_rate(rate: Any, minimum: int, maximum: int) -> int | float:
    if isinstance(rate, bool) or not isinstance(rate, (int, float)) or not minimum <= rate <= maximum:
        raise ValidationError(
            f"Rate must be a number between {minimum} and {maximum} (words per minute)"
        )
    return rate


async def speak_system(ctx: VoiceContext, text: Optional[str], rate: Any) -> None:
    """Speak regardless of preferences, at ``rate`` words per minute."""
    cleaned = _require_text(text)
    settings = ctx.settings
    checked = validate_rate(rate, settings.min_speech_rate, settings.max_speech_rate)
    await ctx.speaker.speak(cleaned, rate=int(checked))
