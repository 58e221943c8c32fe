from __future__ import annotations

import json
import sys
from dataclasses import asdict
from typing import Optional

import typer
import uvicorn

from voice_hooks.core.classifier import classify, load_allowlist
from voice_hooks.core.config import Settings, get_settings
from voice_hooks.hooks import pre_tool

cli = typer.Typer(name="voice-hooks", help="Voice conversation server and tool-permission hooks")
hook_cli = typer.Typer(help="Assistant hooks")
allowlist_cli = typer.Typer(help="Tool allowlist")
config_cli = typer.Typer(help="Configuration")

cli.add_typer(hook_cli, name="hook")
cli.add_typer(allowlist_cli, name="allowlist")
cli.add_typer(config_cli, name="config")


@cli.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host"),
    port: Optional[int] = typer.Option(None, "--port"),
) -> None:
    """Start the HTTP server."""
    settings = get_settings()
    uvicorn.run("voice_hooks.main:app", host=host or settings.host, port=port or settings.port)


@hook_cli.command("pre-tool")
def hook_pre_tool() -> None:
    """Classify the tool request read on stdin (PreToolUse hook)."""
    raise typer.Exit(code=pre_tool.run(sys.stdin, sys.stdout))


@allowlist_cli.command("show")
def allowlist_show(path: Optional[str] = typer.Option(None, "--path", help="Settings file to read")) -> None:
    entries = load_allowlist(path or get_settings().allowlist_path)
    typer.echo(json.dumps({"entries": [asdict(e) for e in entries]}, ensure_ascii=False))


@allowlist_cli.command("check")
def allowlist_check(
    tool_name: str,
    command: Optional[str] = typer.Argument(None, help="Shell command, for the Bash tool"),
    path: Optional[str] = typer.Option(None, "--path", help="Settings file to read"),
) -> None:
    """Show the decision a tool call would get, without writing to the audit log."""
    entries = load_allowlist(path or get_settings().allowlist_path)
    tool_input = {"command": command} if command is not None else {}
    result = classify(tool_name, tool_input, entries)
    typer.echo(json.dumps({"decision": result.decision.value, "reason": result.reason}, ensure_ascii=False))


@config_cli.command("print")
def config_print() -> None:
    typer.echo(json.dumps(Settings().model_dump(), ensure_ascii=False, default=str))


if __name__ == "__main__":
    cli()
