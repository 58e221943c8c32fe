from __future__ import annotations

from typing import Any, Dict


class VoiceHooksError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 400
    code = "VH_4000"

    def __init__(self, message: str, *, details: Any | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(VoiceHooksError):
    """A required field is missing or malformed."""


class PreconditionFailed(VoiceHooksError):
    """Current state does not permit the operation."""

    code = "VH_4001"


class UpstreamFailure(VoiceHooksError):
    """The speech subprocess failed."""

    status_code = 500
    code = "VH_5000"


def error_response(code: str, message: str, *, details: Any | None = None, request_id: str | None = None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "success": False,
        "error": message,
        "code": code,
    }
    if details is not None:
        payload["details"] = details
    if request_id is not None:
        payload["request_id"] = request_id
    return payload
