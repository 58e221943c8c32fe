"""Utterance queue and conversation history.

Every user utterance is stored twice: once in the utterance queue, where its
status moves ``pending -> delivered -> responded``, and once as a ``user``
message in the conversation history. Both records share the same id and are
written together. Assistant replies only exist in the history.

State changes are reported through the ``publish`` callable given to the
store, typically :meth:`voice_hooks.core.broadcast.BroadcastHub.publish`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional
from uuid import uuid4

from voice_hooks.core.errors import ValidationError
from voice_hooks.core.logger import get_logger

logger = get_logger("conversation")

Publisher = Callable[[str, Dict[str, Any]], None]


class UtteranceStatus(str, Enum):
    PENDING = "pending"
    DELIVERED = "delivered"
    RESPONDED = "responded"

    @property
    def rank(self) -> int:
        return _STATUS_RANK[self]


_STATUS_RANK = {
    UtteranceStatus.PENDING: 0,
    UtteranceStatus.DELIVERED: 1,
    UtteranceStatus.RESPONDED: 2,
}


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _clean_text(text: Optional[str]) -> str:
    cleaned = (text or "").strip()
    if not cleaned:
        raise ValidationError("Text is required")
    return cleaned


@dataclass
class Utterance:
    text: str
    timestamp: datetime = field(default_factory=_now)
    status: UtteranceStatus = UtteranceStatus.PENDING
    id: str = field(default_factory=lambda: str(uuid4()))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "timestamp": self.timestamp.isoformat(),
            "status": self.status.value,
        }


@dataclass
class ConversationMessage:
    role: Role
    text: str
    timestamp: datetime = field(default_factory=_now)
    status: Optional[UtteranceStatus] = None
    id: str = field(default_factory=lambda: str(uuid4()))

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "role": self.role.value,
            "text": self.text,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.role is Role.USER and self.status is not None:
            data["status"] = self.status.value
        return data


@dataclass(frozen=True)
class QueueCounts:
    total: int
    pending: int
    delivered: int
    responded: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "total": self.total,
            "pending": self.pending,
            "delivered": self.delivered,
            "responded": self.responded,
        }


def _ignore_event(event_type: str, payload: Dict[str, Any]) -> None:
    return None


class ConversationStore:
    """In-memory utterance queue plus full message history."""

    def __init__(self, publish: Optional[Publisher] = None) -> None:
        self._publish: Publisher = publish or _ignore_event
        self._utterances: Dict[str, Utterance] = {}
        self._messages: Dict[str, ConversationMessage] = {}

    def ingest(self, text: Optional[str], timestamp: Optional[datetime] = None) -> Utterance:
        utterance = Utterance(
            text=_clean_text(text),
            timestamp=_as_utc(timestamp) if timestamp is not None else _now(),
        )
        self._utterances[utterance.id] = utterance
        self._messages[utterance.id] = ConversationMessage(
            id=utterance.id,
            role=Role.USER,
            text=utterance.text,
            timestamp=utterance.timestamp,
            status=utterance.status,
        )
        logger.info("Utterance queued", extra={"utterance_id": utterance.id, "chars": len(utterance.text)})
        self._publish("utterance-added", {"utterance": utterance.to_dict()})
        return utterance

    def append_assistant_reply(self, text: Optional[str]) -> ConversationMessage:
        message = ConversationMessage(role=Role.ASSISTANT, text=_clean_text(text))
        self._messages[message.id] = message
        self._publish("assistant-message-added", {"message": message.to_dict()})
        return message

    def get(self, utterance_id: str) -> Optional[Utterance]:
        return self._utterances.get(utterance_id)

    def mark_delivered(self, utterance_id: str) -> Optional[Utterance]:
        return self._advance(utterance_id, UtteranceStatus.DELIVERED)

    def mark_responded(self, utterance_id: str) -> Optional[Utterance]:
        return self._advance(utterance_id, UtteranceStatus.RESPONDED)

    def _advance(self, utterance_id: str, target: UtteranceStatus) -> Optional[Utterance]:
        # Unknown ids and repeated or backward transitions are no-ops.
        utterance = self._utterances.get(utterance_id)
        if utterance is None or utterance.status.rank >= target.rank:
            return None
        utterance.status = target
        message = self._messages.get(utterance_id)
        if message is not None and message.role is Role.USER:
            message.status = target
        logger.info("Utterance %s", target.value, extra={"utterance_id": utterance_id})
        self._publish("utterance-status-changed", {"utterance": utterance.to_dict()})
        return utterance

    def delete(self, utterance_id: str) -> bool:
        """Remove a pending utterance; anything else is left untouched."""
        utterance = self._utterances.get(utterance_id)
        if utterance is None or utterance.status is not UtteranceStatus.PENDING:
            return False
        del self._utterances[utterance_id]
        self._messages.pop(utterance_id, None)
        logger.info("Utterance deleted", extra={"utterance_id": utterance_id})
        self._publish("utterance-deleted", {"id": utterance_id})
        return True

    def clear(self) -> int:
        removed = len(self._utterances)
        self._utterances.clear()
        self._messages.clear()
        logger.info("Queue cleared", extra={"removed": removed})
        self._publish("queue-cleared", {})
        return removed

    def with_status(self, status: UtteranceStatus, *, newest_first: bool = False) -> List[Utterance]:
        items = [u for u in self._utterances.values() if u.status is status]
        return sorted(items, key=lambda u: u.timestamp, reverse=newest_first)

    def recent_utterances(self, limit: int = 10) -> List[Utterance]:
        ordered = sorted(self._utterances.values(), key=lambda u: u.timestamp, reverse=True)
        return ordered[: max(limit, 0)]

    def recent_messages(self, limit: int = 50) -> List[ConversationMessage]:
        if limit <= 0:
            return []
        ordered = sorted(self._messages.values(), key=lambda m: m.timestamp)
        return ordered[-limit:]

    def counts(self) -> QueueCounts:
        by_status = {status: 0 for status in UtteranceStatus}
        for utterance in self._utterances.values():
            by_status[utterance.status] += 1
        return QueueCounts(
            total=len(self._utterances),
            pending=by_status[UtteranceStatus.PENDING],
            delivered=by_status[UtteranceStatus.DELIVERED],
            responded=by_status[UtteranceStatus.RESPONDED],
        )
