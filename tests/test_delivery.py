from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import pytest

from voice_hooks.core.conversation import UtteranceStatus
from voice_hooks.core.delivery import deliver_pending, speak_reply, speak_system, validate_rate, wait_for_pending
from voice_hooks.core.errors import PreconditionFailed, UpstreamFailure, ValidationError


def test_deliver_pending_orders_and_marks(ctx) -> None:
    first = ctx.store.ingest("first", datetime(2024, 1, 1, tzinfo=timezone.utc))
    second = ctx.store.ingest("second", datetime(2024, 1, 1, 0, 0, 1, tzinfo=timezone.utc))
    delivered = deliver_pending(ctx.store)
    assert [u.id for u in delivered] == [second.id, first.id]
    assert all(u.status is UtteranceStatus.DELIVERED for u in delivered)
    assert deliver_pending(ctx.store) == []


@pytest.mark.asyncio
async def test_wait_requires_voice_input(ctx) -> None:
    with pytest.raises(PreconditionFailed):
        await wait_for_pending(ctx, timeout=0.01)


@pytest.mark.asyncio
@pytest.mark.parametrize("timeout", [float("nan"), float("inf")])
async def test_wait_rejects_non_finite_timeout(ctx, timeout) -> None:
    ctx.preferences.set_voice_input_active(True)
    with pytest.raises(ValidationError):
        await wait_for_pending(ctx, timeout=timeout, poll_interval=0.01)


@pytest.mark.asyncio
async def test_wait_returns_pending_immediately(ctx) -> None:
    ctx.preferences.set_voice_input_active(True)
    first = ctx.store.ingest("first")
    second = ctx.store.ingest("second")
    result = await wait_for_pending(ctx, timeout=5)
    assert [u.id for u in result.utterances] == [first.id, second.id]
    assert result.timed_out is False
    assert ctx.store.counts().delivered == 2


@pytest.mark.asyncio
async def test_wait_times_out_empty(ctx) -> None:
    ctx.preferences.set_voice_input_active(True)
    result = await wait_for_pending(ctx, timeout=0.05, poll_interval=0.01)
    assert result.utterances == []
    assert result.timed_out is True
    assert result.waited_sec >= 0.05


@pytest.mark.asyncio
async def test_wait_picks_up_late_utterance(ctx) -> None:
    ctx.preferences.set_voice_input_active(True)

    async def speak_later() -> None:
        await asyncio.sleep(0.03)
        ctx.store.ingest("late")

    task = asyncio.create_task(speak_later())
    result = await wait_for_pending(ctx, timeout=2, poll_interval=0.01)
    await task
    assert [u.text for u in result.utterances] == ["late"]


@pytest.mark.asyncio
async def test_wait_stops_when_voice_input_turned_off(ctx) -> None:
    ctx.preferences.set_voice_input_active(True)

    async def turn_off() -> None:
        await asyncio.sleep(0.02)
        ctx.preferences.set_voice_input_active(False)

    task = asyncio.create_task(turn_off())
    result = await wait_for_pending(ctx, timeout=2, poll_interval=0.01)
    await task
    assert result.interrupted is True
    assert result.timed_out is False


@pytest.mark.asyncio
async def test_cancelled_wait_leaves_queue_untouched(ctx) -> None:
    ctx.preferences.set_voice_input_active(True)
    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(wait_for_pending(ctx, timeout=10, poll_interval=0.01), timeout=0.05)
    ctx.store.ingest("after cancel")
    assert ctx.store.counts().pending == 1


@pytest.mark.asyncio
async def test_speak_reply_marks_delivered_responded(ctx, speaker) -> None:
    ctx.preferences.set_voice_responses_enabled(True)
    answered = ctx.store.ingest("question")
    waiting = ctx.store.ingest("still pending")
    ctx.store.mark_delivered(answered.id)

    assert await speak_reply(ctx, "  answer ") == 1
    assert speaker.spoken == [("answer", None)]
    assert answered.status is UtteranceStatus.RESPONDED
    assert waiting.status is UtteranceStatus.PENDING
    assert ctx.store.recent_messages()[-1].text == "answer"


@pytest.mark.asyncio
async def test_speak_reply_checks(ctx, speaker) -> None:
    with pytest.raises(ValidationError):
        await speak_reply(ctx, " ")
    with pytest.raises(PreconditionFailed):
        await speak_reply(ctx, "hello")
    assert speaker.spoken == []


@pytest.mark.asyncio
async def test_speak_reply_failure_records_nothing(ctx, speaker) -> None:
    ctx.preferences.set_voice_responses_enabled(True)
    u = ctx.store.ingest("question")
    ctx.store.mark_delivered(u.id)
    speaker.error = "no audio device"
    with pytest.raises(UpstreamFailure):
        await speak_reply(ctx, "answer")
    assert u.status is UtteranceStatus.DELIVERED
    assert len(ctx.store.recent_messages()) == 1


@pytest.mark.parametrize("rate", [75, 150, 225, 100.5])
def test_validate_rate_accepts(rate) -> None:
    assert validate_rate(rate, 75, 225) == rate


@pytest.mark.parametrize("rate", [50, 74.9, 226, "150", None, True])
def test_validate_rate_rejects(rate) -> None:
    with pytest.raises(ValidationError):
        validate_rate(rate, 75, 225)


@pytest.mark.asyncio
async def test_speak_system_ignores_preferences(ctx, speaker) -> None:
    await speak_system(ctx, "build finished", 200)
    assert speaker.spoken == [("build finished", 200)]
