"""Pre-tool permission classifier.

A tool call is first checked against the destructive rules, which always win,
then against the allowlist. The result is one of ``allow``, ``deny`` or
``ask``, and every call leaves one line in the audit log.

The rule tables below are plain data so they can be inspected and tested
without touching the filesystem.
"""

from __future__ import annotations

import json
import re
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple

from voice_hooks.core.logger import get_logger

logger = get_logger("hooks")

SHELL_TOOL = "Bash"
DELETE_TOOLS = frozenset({"Delete"})

# Commands that only read or report; their arguments are never inspected.
SAFE_LEADING_COMMANDS = frozenset(
    {
        "gh",
        "npm",
        "curl",
        "cat",
        "echo",
        "grep",
        "sed",
        "awk",
        "jq",
        "head",
        "tail",
        "ls",
        "find",
        "which",
        "whereis",
    }
)

DESTRUCTIVE_RULES: Tuple[Tuple[str, re.Pattern[str]], ...] = (
    ("recursive or forced delete", re.compile(r"^rm\b.*\s-(-recursive\b|-force\b|[A-Za-z]*[rRf])")),
    ("hard reset", re.compile(r"^git\s+reset\b.*\s--hard\b")),
    ("forced push", re.compile(r"^git\s+push\b.*\s(--force\b|-[A-Za-z]*f)")),
    ("forced clean", re.compile(r"^git\s+clean\b.*\s-(-force\b|[A-Za-z]*f)")),
    ("forced branch delete", re.compile(r"^git\s+branch\b.*\s-[A-Za-z]*D\b")),
)

PREVIEW_CHARS = 50


class Decision(str, Enum):
    ALLOW = "allow"
    DENY = "deny"
    ASK = "ask"


@dataclass(frozen=True)
class AllowlistEntry:
    tool: str
    prefix: Optional[str] = None

    def matches(self, tool_name: str, command: str) -> bool:
        if self.tool != tool_name:
            return False
        if tool_name == SHELL_TOOL:
            return self.prefix is None or command.startswith(self.prefix)
        return self.prefix is None


@dataclass(frozen=True)
class Classification:
    decision: Decision
    reason: str

    def to_hook_output(self) -> dict[str, Any]:
        output: dict[str, Any] = {
            "hookEventName": "PreToolUse",
            "permissionDecision": self.decision.value,
        }
        if self.decision is not Decision.ALLOW:
            output["permissionDecisionReason"] = self.reason
        return {"hookSpecificOutput": output}


@dataclass
class AuditRecord:
    tool_name: str
    decision: str
    reason: str
    input: Any
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


AuditSink = Callable[[AuditRecord], None]


class AuditLog:
    """Append-only JSONL audit file. Write failures are logged, never raised."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()

    def __call__(self, record: AuditRecord) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as handle:
                handle.write(json.dumps(asdict(record), ensure_ascii=False, default=str) + "\n")
        except Exception:
            logger.debug("Unable to persist audit record", exc_info=True)


_ENTRY_RE = re.compile(r"^(?P<tool>[^()]+?)(?:\((?P<scope>.*)\))?$")


def parse_allowlist_entry(raw: str) -> Optional[AllowlistEntry]:
    """Parse ``Tool`` or ``Tool(prefix:*)``; anything else is ignored."""
    match = _ENTRY_RE.match(raw.strip())
    if match is None:
        return None
    scope = match.group("scope")
    if scope is None:
        return AllowlistEntry(tool=match.group("tool"))
    # "npm test:*" -> "npm test"
    prefix = scope.rsplit(":", 1)[0] if ":" in scope else scope
    return AllowlistEntry(tool=match.group("tool"), prefix=prefix)


def parse_allowlist(raw_entries: Iterable[Any]) -> List[AllowlistEntry]:
    entries: List[AllowlistEntry] = []
    for raw in raw_entries:
        if not isinstance(raw, str):
            continue
        entry = parse_allowlist_entry(raw)
        if entry is not None:
            entries.append(entry)
    return entries


def load_allowlist(path: str | Path) -> List[AllowlistEntry]:
    """Read ``permissions.allow`` from a settings file; missing file means empty."""
    settings_path = Path(path)
    if not settings_path.is_file():
        return []
    try:
        data = json.loads(settings_path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        logger.warning("Unreadable allowlist file", extra={"path": str(settings_path)})
        return []
    permissions = data.get("permissions") if isinstance(data, dict) else None
    allow = permissions.get("allow") if isinstance(permissions, dict) else None
    return parse_allowlist(allow or [])


def command_of(tool_input: Any) -> str:
    if isinstance(tool_input, dict):
        command = tool_input.get("command")
        if isinstance(command, str):
            return command
    return ""


def _preview(tool_input: Any) -> str:
    if isinstance(tool_input, dict):
        for key in ("command", "file_path"):
            value = tool_input.get(key)
            if isinstance(value, str) and value:
                return value[:PREVIEW_CHARS]
    return ""


def destructive_operation(tool_name: str, tool_input: Any) -> Optional[str]:
    """Return the name of the destructive rule hit, or ``None``."""
    if tool_name in DELETE_TOOLS:
        return "file deletion"
    if tool_name != SHELL_TOOL:
        return None
    command = command_of(tool_input).lstrip()
    tokens = command.split()
    if not tokens or tokens[0] in SAFE_LEADING_COMMANDS:
        return None
    for name, pattern in DESTRUCTIVE_RULES:
        if pattern.search(command):
            return name
    return None


def is_allowlisted(tool_name: str, tool_input: Any, allowlist: Sequence[AllowlistEntry]) -> bool:
    command = command_of(tool_input)
    return any(entry.matches(tool_name, command) for entry in allowlist)


def classify(
    tool_name: str,
    tool_input: Any,
    allowlist: Sequence[AllowlistEntry],
    audit: Optional[AuditSink] = None,
) -> Classification:
    operation = destructive_operation(tool_name, tool_input)
    if operation is not None:
        result = Classification(
            Decision.DENY,
            "Destructive operation detected "
            f"({operation}). This operation cannot be easily undone and requires verbal approval. "
            f"Operation: {_preview(tool_input)}",
        )
    elif is_allowlisted(tool_name, tool_input, allowlist):
        result = Classification(Decision.ALLOW, "Tool on allowlist")
    else:
        result = Classification(
            Decision.ASK,
            f"Tool '{tool_name}' is not on the allowlist. Verbal approval required before use.",
        )
    _audit(audit, tool_name, tool_input, result)
    return result


def unparseable(error: str, audit: Optional[AuditSink] = None, raw: Any = None) -> Classification:
    """Fallback when the hook input cannot be read: always ask."""
    result = Classification(
        Decision.ASK,
        f"Could not parse tool request ({error}). Verbal approval required before use.",
    )
    _audit(audit, "", raw, result)
    return result


def _audit(audit: Optional[AuditSink], tool_name: str, tool_input: Any, result: Classification) -> None:
    logger.info(
        "Tool classified",
        extra={"tool_name": tool_name, "decision": result.decision.value},
    )
    if audit is None:
        return
    try:
        audit(
            AuditRecord(
                tool_name=tool_name,
                decision=result.decision.value.upper(),
                reason=result.reason,
                input=tool_input,
            )
        )
    except Exception:
        logger.debug("Audit sink failed", exc_info=True)
