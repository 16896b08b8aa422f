"""Per-event hook handlers.

Each handler takes one decoded envelope and returns what goes back to the
host. Only the delegation gate can block; every other handler passes the
event through untouched after doing its advisory work.

Operator-facing text goes to stderr via ``console``; stdout carries the
hook protocol only.
"""

from __future__ import annotations

import logging
from pathlib import Path

from rich.console import Console

from . import EXIT_BLOCK
from .config import HookSettings
from .envelope import Envelope, HookResult, decode, encode, make_decision, passthrough
from .manifest import record_artifact
from .plan_locator import format_reminder, locate_plan
from .policy_gate import (
    build_context,
    evaluate,
    format_block_message,
    format_context_warning,
)
from .review import REVIEW_CHECKPOINT, UNCOMMITTED_WARNING, has_uncommitted_changes
from .section_guard import find_protected_sections, format_warning
from .state import read_document, write_pointer

logger = logging.getLogger(__name__)


def pre_tool_use(envelope: Envelope, settings: HookSettings, console: Console) -> HookResult:
    """Gate delegations on required prompt content.

    An event with no tool_input object is not a delegation request and
    passes through ungated.
    """
    if envelope.tool_name not in settings.delegation_tools or not envelope.has_tool_input:
        return passthrough(envelope)

    decision = evaluate(envelope.get_str("prompt"), settings.context_tools)

    if not decision.allowed:
        console.print(format_block_message(decision), markup=False, highlight=False)
        return HookResult(stdout=b"", exit_code=EXIT_BLOCK)

    # allowed implies the plan path rule matched
    plan_path = decision.plan_path or ""
    write_pointer(settings.pointer_path, plan_path)

    if not decision.mentions_context_tools:
        console.print(
            format_context_warning(settings.context_tools), markup=False, highlight=False
        )

    output = make_decision("allow", context=build_context(plan_path))
    return HookResult(stdout=encode(output))


def pre_edit(envelope: Envelope, settings: HookSettings, console: Console) -> HookResult:
    """Warn before editing a file that holds VERBATIM sections. Never blocks."""
    if envelope.tool_name in settings.edit_tools:
        file_path = envelope.get_str("file_path")
        if file_path and Path(file_path).is_file():
            text = read_document(file_path)
            sections = find_protected_sections(text) if text is not None else []
            if sections:
                console.print(format_warning(file_path, sections), highlight=False)
    return passthrough(envelope)


def artifact_tracker(envelope: Envelope, settings: HookSettings, console: Console) -> HookResult:
    """Record scripts created with Write in the transient artifact manifest."""
    if envelope.tool_name in settings.write_tools:
        file_path = envelope.get_str("file_path")
        if file_path:
            entry = record_artifact(file_path, settings)
            if entry is not None:
                console.print(
                    f"[ArtifactTracker] Tracked script: {file_path} (task {entry.inferred_task})",
                    markup=False,
                    highlight=False,
                )
    return passthrough(envelope)


def post_task(envelope: Envelope, settings: HookSettings, console: Console) -> HookResult:
    """After a delegation: review checkpoint, uncommitted work, open plan tasks."""
    if envelope.tool_name not in settings.delegation_tools:
        return passthrough(envelope)

    console.print(REVIEW_CHECKPOINT, highlight=False)

    if has_uncommitted_changes(settings.git_timeout_seconds):
        console.print(UNCOMMITTED_WARNING, highlight=False)

    result = locate_plan(settings)
    if result is not None and result.has_incomplete_tasks:
        console.print(format_reminder(result), highlight=False)
    elif result is None:
        logger.debug("No delivery plan found")

    return passthrough(envelope)


HANDLERS = {
    "pre-tool-use": pre_tool_use,
    "pre-edit": pre_edit,
    "artifact-tracker": artifact_tracker,
    "post-task": post_task,
}


def run_hook(name: str, raw: bytes, settings: HookSettings, console: Console) -> HookResult:
    """Decode stdin bytes and dispatch to the named handler.

    Malformed input and unexpected handler errors both fall back to
    passthrough; a policy block is the only way an event is stopped.
    """
    envelope = decode(raw)
    if envelope.error:
        console.print(f"[{name}] {envelope.error}", markup=False, highlight=False)
        return passthrough(envelope)
    if not envelope.ok:
        return passthrough(envelope)

    handler = HANDLERS[name]
    try:
        return handler(envelope, settings, console)
    except Exception as e:
        logger.error("%s hook failed, passing event through: %s", name, e)
        return passthrough(envelope)
