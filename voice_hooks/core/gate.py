"""Decide whether the assistant may use a tool or end its turn.

Checks run in priority order and the first failing one wins: unread voice
input, then unspoken replies, then the rule that a turn may not end while
voice input is active and the queue holds anything.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from voice_hooks.core.conversation import ConversationStore
from voice_hooks.core.errors import ValidationError
from voice_hooks.core.preferences import VoicePreferences


class GateAction(str, Enum):
    TOOL_USE = "tool-use"
    STOP = "stop"


class RequiredAction(str, Enum):
    DEQUEUE_UTTERANCES = "dequeue_utterances"
    SPEAK = "speak"
    WAIT_FOR_UTTERANCE = "wait_for_utterance"


@dataclass(frozen=True)
class GateDecision:
    allowed: bool
    required_action: Optional[RequiredAction] = None
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"allowed": self.allowed}
        if self.required_action is not None:
            data["requiredAction"] = self.required_action.value
        if self.reason is not None:
            data["reason"] = self.reason
        return data


def parse_action(value: Any) -> GateAction:
    try:
        return GateAction(value)
    except ValueError:
        raise ValidationError('Invalid action. Must be "tool-use" or "stop"') from None


def evaluate(action: GateAction, store: ConversationStore, preferences: VoicePreferences) -> GateDecision:
    counts = store.counts()

    if preferences.voice_input_active and counts.pending > 0:
        return GateDecision(
            allowed=False,
            required_action=RequiredAction.DEQUEUE_UTTERANCES,
            reason=(
                f"{counts.pending} pending utterance(s) must be dequeued first. "
                "Please use dequeue_utterances to process them."
            ),
        )

    if preferences.voice_responses_enabled and counts.delivered > 0:
        return GateDecision(
            allowed=False,
            required_action=RequiredAction.SPEAK,
            reason=(
                f"{counts.delivered} delivered utterance(s) require voice response. "
                "Please use the speak tool to respond before proceeding."
            ),
        )

    if action is GateAction.STOP and preferences.voice_input_active and counts.total > 0:
        return GateDecision(
            allowed=False,
            required_action=RequiredAction.WAIT_FOR_UTTERANCE,
            reason=(
                "Assistant tried to end its response. Stopping is not allowed without first "
                "checking for voice input. Assistant should now use wait_for_utterance to "
                "check for voice input"
            ),
        )

    return GateDecision(allowed=True)


def evaluate_stop_hook(store: ConversationStore, preferences: VoicePreferences) -> Dict[str, str]:
    """Stop-hook verdict: ``block`` while input is unread or a reply is owed."""
    counts = store.counts()
    if counts.pending > 0:
        return {
            "decision": "block",
            "reason": (
                f"There are {counts.pending} pending utterances. "
                "Please check for new voice input before stopping."
            ),
        }
    if preferences.voice_responses_enabled and counts.delivered > 0:
        return {
            "decision": "block",
            "reason": (
                f"There are {counts.delivered} unresponded utterances. "
                "Please speak your response before stopping."
            ),
        }
    return {"decision": "approve"}
