"""Event envelope decoding and hook output.

The host writes one JSON document to stdin per tool event. A hook that
cannot parse it, or that does not handle the tool, must hand the original
bytes back untouched so the event is never lost or altered on its way
through the pipeline.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TypedDict, cast

from . import EXIT_ALLOW, EXIT_BLOCK


class ToolInput(TypedDict, total=False):
    """Tool parameters from Claude Code."""

    file_path: str
    prompt: str
    description: str
    subagent_type: str
    content: str


class HookInput(TypedDict):
    """JSON input received via stdin."""

    tool_name: str
    tool_input: ToolInput


class HookSpecificOutput(TypedDict, total=False):
    """Inner hook output structure."""

    hookEventName: str
    permissionDecision: str  # "allow" | "deny" | "ask"
    permissionDecisionReason: str
    additionalContext: str


class HookOutput(TypedDict):
    """JSON output returned via stdout."""

    hookSpecificOutput: HookSpecificOutput


@dataclass
class Envelope:
    """One decoded tool event plus the bytes it arrived as."""

    raw: bytes
    data: HookInput | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.data is not None

    @property
    def tool_name(self) -> str:
        if self.data is None:
            return ""
        name = self.data.get("tool_name", "")
        return name if isinstance(name, str) else ""

    @property
    def tool_input(self) -> ToolInput:
        if self.data is None:
            return {}
        tool_input = self.data.get("tool_input")
        return tool_input if isinstance(tool_input, dict) else {}

    @property
    def has_tool_input(self) -> bool:
        """True when the event carries a tool_input object, even an empty one."""
        return self.data is not None and isinstance(self.data.get("tool_input"), dict)

    def get_str(self, key: str) -> str:
        """Return a string field of tool_input, or "" if absent or not a string."""
        value = self.tool_input.get(key)
        return value if isinstance(value, str) else ""


@dataclass
class HookResult:
    """What a hook hands back to the host: stdout bytes and an exit code."""

    stdout: bytes
    exit_code: int = EXIT_ALLOW

    @property
    def blocked(self) -> bool:
        return self.exit_code == EXIT_BLOCK


def decode(raw: bytes) -> Envelope:
    """Parse raw stdin bytes. Never raises.

    A document that parses but is not a JSON object is treated like an
    unrecognized event: ``data`` stays None and no error is recorded.
    """
    try:
        data = json.loads(raw)
    except (ValueError, UnicodeDecodeError) as e:
        return Envelope(raw=raw, error=f"Invalid hook input: {e}")
    if not isinstance(data, dict):
        return Envelope(raw=raw)
    return Envelope(raw=raw, data=cast(HookInput, data))


def passthrough(envelope: Envelope) -> HookResult:
    """Hand the event back exactly as received."""
    return HookResult(stdout=envelope.raw)


def make_decision(
    decision: str,
    *,
    reason: str = "",
    context: str = "",
    event: str = "PreToolUse",
) -> HookOutput:
    """Create hook output with decision."""
    hook_output: HookSpecificOutput = {
        "hookEventName": event,
        "permissionDecision": decision,
    }
    if reason:
        hook_output["permissionDecisionReason"] = reason
    if context:
        hook_output["additionalContext"] = context
    return {"hookSpecificOutput": hook_output}


def encode(output: HookOutput) -> bytes:
    return (json.dumps(output) + "\n").encode("utf-8")
