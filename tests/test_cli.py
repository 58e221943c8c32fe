from __future__ import annotations

import json

from typer.testing import CliRunner

from voice_hooks import cli as cli_module


runner = CliRunner()


def test_cli_help():
    result = runner.invoke(cli_module.cli, ["--help"])
    assert result.exit_code == 0
    assert "serve" in result.output and "hook" in result.output


def test_allowlist_show_and_check(tmp_path):
    settings = tmp_path / "settings.local.json"
    settings.write_text(json.dumps({"permissions": {"allow": ["Bash(npm test:*)", "Read"]}}), encoding="utf-8")

    shown = runner.invoke(cli_module.cli, ["allowlist", "show", "--path", str(settings)])
    assert shown.exit_code == 0
    assert json.loads(shown.output)["entries"] == [
        {"tool": "Bash", "prefix": "npm test"},
        {"tool": "Read", "prefix": None},
    ]

    checked = runner.invoke(cli_module.cli, ["allowlist", "check", "Bash", "rm -rf dist", "--path", str(settings)])
    assert checked.exit_code == 0
    assert json.loads(checked.output)["decision"] == "deny"

    checked = runner.invoke(cli_module.cli, ["allowlist", "check", "Bash", "npm test", "--path", str(settings)])
    assert json.loads(checked.output)["decision"] == "allow"


def test_hook_pre_tool_command():
    payload = json.dumps({"tool_name": "Write", "tool_input": {"file_path": "/tmp/x"}})
    result = runner.invoke(cli_module.cli, ["hook", "pre-tool"], input=payload)
    assert result.exit_code == 0
    assert json.loads(result.output)["hookSpecificOutput"]["permissionDecision"] == "ask"


def test_config_print():
    result = runner.invoke(cli_module.cli, ["config", "print"])
    assert result.exit_code == 0
    assert "allowlist_path" in json.loads(result.output)
