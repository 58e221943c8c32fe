"""PreToolUse hook: read one tool request on stdin, print one decision.

The process always exits 0; the decision travels in the JSON payload.
"""

from __future__ import annotations

import json
import sys
from typing import Any, Optional, Sequence, TextIO

from voice_hooks.core.classifier import (
    AllowlistEntry,
    AuditLog,
    AuditSink,
    Classification,
    classify,
    load_allowlist,
    unparseable,
)
from voice_hooks.core.config import get_settings
from voice_hooks.core.logger import get_logger

logger = get_logger("hooks")


def decide(raw: str, allowlist: Sequence[AllowlistEntry], audit: Optional[AuditSink] = None) -> Classification:
    try:
        payload: Any = json.loads(raw)
    except ValueError as exc:
        return unparseable(f"invalid JSON: {exc.msg}", audit, raw[:200])
    if not isinstance(payload, dict):
        return unparseable("expected a JSON object", audit, payload)
    tool_name = payload.get("tool_name")
    if not isinstance(tool_name, str) or not tool_name:
        return unparseable("missing tool_name", audit, payload)
    tool_input = payload.get("tool_input")
    if tool_input is None:
        tool_input = {}
    return classify(tool_name, tool_input, allowlist, audit)


def _summary(exc: BaseException) -> str:
    lines = str(exc).splitlines()
    return lines[0] if lines else type(exc).__name__


def run(stdin: TextIO, stdout: TextIO) -> int:
    audit: Optional[AuditSink] = None
    try:
        settings = get_settings()
        audit = AuditLog(settings.audit_log_path)
        allowlist = load_allowlist(settings.allowlist_path)
        result = decide(stdin.read(), allowlist, audit)
    except Exception as exc:
        logger.exception("Pre-tool hook failed")
        result = unparseable(_summary(exc), audit)
    stdout.write(json.dumps(result.to_hook_output(), ensure_ascii=False) + "\n")
    stdout.flush()
    return 0


def main() -> None:
    sys.exit(run(sys.stdin, sys.stdout))


if __name__ == "__main__":
    main()
