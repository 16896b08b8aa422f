"""Tests for the per-event hook handlers."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

from rich.console import Console

from conftest import event, output
from delivery_hooks import EXIT_ALLOW, EXIT_BLOCK
from delivery_hooks.config import HookSettings
from delivery_hooks.hooks import run_hook
from delivery_hooks.manifest import load_manifest
from delivery_hooks.state import read_pointer

VALID_PROMPT = "Must satisfy quality gates. ## Spec Reference. Delivery Plan: docs/plan.md"


class TestDecoder:
    def test_malformed_input_passes_through(self, settings: HookSettings, console: Console):
        raw = b'{"tool_name": "Task", broken'
        for name in ["pre-tool-use", "pre-edit", "artifact-tracker", "post-task"]:
            result = run_hook(name, raw, settings, console)
            assert result.stdout == raw
            assert result.exit_code == EXIT_ALLOW
        assert "Invalid hook input" in output(console)

    def test_empty_input_passes_through(self, settings: HookSettings, console: Console):
        result = run_hook("pre-tool-use", b"", settings, console)
        assert result.stdout == b""
        assert result.exit_code == EXIT_ALLOW

    def test_non_object_json_passes_through(self, settings: HookSettings, console: Console):
        raw = b'["Task"]'
        assert run_hook("pre-tool-use", raw, settings, console).stdout == raw

    def test_unknown_tool_bytes_unchanged(self, settings: HookSettings, console: Console):
        raw = b'{ "tool_name" : "Read",\n  "tool_input": {"file_path": "x"} }'
        for name in ["pre-tool-use", "pre-edit", "artifact-tracker", "post-task"]:
            assert run_hook(name, raw, settings, console).stdout == raw

    def test_handler_crash_passes_through(self, settings: HookSettings, console: Console):
        raw = event("Write", file_path="a.sh")
        with patch("delivery_hooks.hooks.record_artifact", side_effect=RuntimeError("boom")):
            result = run_hook("artifact-tracker", raw, settings, console)
        assert result.stdout == raw
        assert result.exit_code == EXIT_ALLOW


class TestPreToolUse:
    def test_allow_writes_pointer_and_echoes_plan(
        self, project: Path, settings: HookSettings, console: Console
    ):
        result = run_hook("pre-tool-use", event("Task", prompt=VALID_PROMPT), settings, console)
        assert result.exit_code == EXIT_ALLOW
        payload = json.loads(result.stdout)["hookSpecificOutput"]
        assert payload["hookEventName"] == "PreToolUse"
        assert payload["permissionDecision"] == "allow"
        assert "Delivery plan: docs/plan.md" in payload["additionalContext"]
        assert read_pointer(settings.pointer_path) == "docs/plan.md"
        assert (project / ".claude" / "state" / "current-delivery-plan.txt").read_text() == "docs/plan.md"

    def test_block_without_plan_path(self, settings: HookSettings, console: Console):
        prompt = "Must satisfy quality gates. ## Spec Reference."
        result = run_hook("pre-tool-use", event("Task", prompt=prompt), settings, console)
        assert result.blocked
        assert result.exit_code == EXIT_BLOCK
        assert result.stdout == b""
        text = output(console)
        assert "Delivery plan path" in text
        assert "Quality gates (" not in text
        assert "Spec reference (" not in text
        assert not settings.pointer_path.exists()

    def test_block_keeps_previous_pointer(self, settings: HookSettings, console: Console):
        run_hook("pre-tool-use", event("Task", prompt=VALID_PROMPT), settings, console)
        run_hook("pre-tool-use", event("Task", prompt="do it"), settings, console)
        assert read_pointer(settings.pointer_path) == "docs/plan.md"

    def test_pointer_overwritten(self, settings: HookSettings, console: Console):
        run_hook("pre-tool-use", event("Task", prompt=VALID_PROMPT), settings, console)
        second = VALID_PROMPT.replace("docs/plan.md", "plans/next.md")
        run_hook("pre-tool-use", event("Agent", prompt=second), settings, console)
        assert read_pointer(settings.pointer_path) == "plans/next.md"

    def test_missing_prompt_blocks(self, settings: HookSettings, console: Console):
        result = run_hook("pre-tool-use", event("Task"), settings, console)
        assert result.exit_code == EXIT_BLOCK

    def test_no_tool_input_passes_through(self, settings: HookSettings, console: Console):
        for raw in [b'{"tool_name": "Task"}', b'{"tool_name": "Task", "tool_input": "go"}']:
            result = run_hook("pre-tool-use", raw, settings, console)
            assert result.stdout == raw
            assert result.exit_code == EXIT_ALLOW
        assert read_pointer(settings.pointer_path) is None
        assert output(console) == ""

    def test_context_tool_warning_only(self, settings: HookSettings, console: Console):
        result = run_hook("pre-tool-use", event("Task", prompt=VALID_PROMPT), settings, console)
        assert result.exit_code == EXIT_ALLOW
        assert "doesn't mention using context tools" in output(console)

    def test_no_warning_when_tools_mentioned(self, settings: HookSettings, console: Console):
        prompt = VALID_PROMPT + " Use qmd_search for details."
        run_hook("pre-tool-use", event("Task", prompt=prompt), settings, console)
        assert "context tools" not in output(console)

    def test_pointer_write_failure_still_allows(
        self, project: Path, settings: HookSettings, console: Console
    ):
        (project / ".claude").mkdir()
        (project / ".claude" / "state").write_text("not a directory")
        result = run_hook("pre-tool-use", event("Task", prompt=VALID_PROMPT), settings, console)
        assert result.exit_code == EXIT_ALLOW
        assert json.loads(result.stdout)["hookSpecificOutput"]["permissionDecision"] == "allow"


class TestPreEdit:
    def test_warns_and_passes_through(self, project: Path, settings: HookSettings, console: Console):
        doc = project / "spec.md"
        doc.write_text("# Spec\n<!-- VERBATIM: Gates -->\n- a\n<!-- END VERBATIM -->\n")
        raw = event("Edit", file_path=str(doc), old_string="a", new_string="b")
        result = run_hook("pre-edit", raw, settings, console)
        assert result.stdout == raw
        assert result.exit_code == EXIT_ALLOW
        assert "Gates (lines 2-4)" in output(console)

    def test_silent_without_sections(self, project: Path, settings: HookSettings, console: Console):
        doc = project / "notes.md"
        doc.write_text("nothing protected\n")
        run_hook("pre-edit", event("Edit", file_path=str(doc)), settings, console)
        assert output(console) == ""

    def test_missing_file(self, settings: HookSettings, console: Console):
        raw = event("Edit", file_path="nope.md")
        assert run_hook("pre-edit", raw, settings, console).stdout == raw
        assert output(console) == ""


class TestArtifactTracker:
    def test_tracks_written_script(self, settings: HookSettings, console: Console):
        raw = event("Write", file_path="scripts/task-2.3-helper.sh", content="#!/bin/sh\n")
        result = run_hook("artifact-tracker", raw, settings, console)
        assert result.stdout == raw
        manifest = load_manifest(settings.manifest_path)
        assert manifest["scripts/task-2.3-helper.sh"].inferred_task == "2.3"
        assert manifest["scripts/task-2.3-helper.sh"].reviewed is False
        assert "Tracked script: scripts/task-2.3-helper.sh" in output(console)

    def test_edit_does_not_track(self, settings: HookSettings, console: Console):
        run_hook("artifact-tracker", event("Edit", file_path="run.sh"), settings, console)
        assert load_manifest(settings.manifest_path) == {}

    def test_non_script_not_tracked(self, settings: HookSettings, console: Console):
        run_hook("artifact-tracker", event("Write", file_path="README.md"), settings, console)
        assert not settings.manifest_path.exists()


class TestPostTask:
    def test_reminds_about_incomplete_plan(
        self, project: Path, settings: HookSettings, console: Console
    ):
        (project / "docs").mkdir()
        (project / "docs" / "plan.md").write_text("- [x] 1.1\n- [ ] 1.2\n")
        run_hook("pre-tool-use", event("Task", prompt=VALID_PROMPT), settings, console)

        raw = event("Task", prompt=VALID_PROMPT)
        with patch("delivery_hooks.hooks.has_uncommitted_changes", return_value=False):
            result = run_hook("post-task", raw, settings, console)
        assert result.stdout == raw
        text = output(console)
        assert "CODE REVIEW CHECKPOINT" in text
        assert "DELIVERY PLAN REMINDER" in text
        assert "(docs/plan.md)" in text
        assert "uncommitted changes" not in text

    def test_complete_plan_no_reminder(self, project: Path, settings: HookSettings, console: Console):
        (project / "DELIVERY_PLAN.md").write_text("- [x] done\n")
        with patch("delivery_hooks.hooks.has_uncommitted_changes", return_value=False):
            run_hook("post-task", event("Task"), settings, console)
        assert "DELIVERY PLAN REMINDER" not in output(console)

    def test_uncommitted_changes_warning(self, settings: HookSettings, console: Console):
        with patch("delivery_hooks.hooks.has_uncommitted_changes", return_value=True):
            run_hook("post-task", event("Task"), settings, console)
        assert "uncommitted changes" in output(console)

    def test_other_tools_ignored(self, settings: HookSettings, console: Console):
        raw = event("Bash", command="ls")
        assert run_hook("post-task", raw, settings, console).stdout == raw
        assert output(console) == ""
