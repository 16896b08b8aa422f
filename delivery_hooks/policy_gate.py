"""Delegation gate.

A subagent cannot see the orchestrator's context; it only knows what the
delegation prompt tells it. The gate refuses a delegation whose prompt
leaves out the quality gates, the spec reference or the delivery plan path.

Requirements are an ordered tuple of named predicates so each can be
checked and reported on its own.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable

DELIVERY_PLAN_PATTERN = re.compile(r"Delivery\s+Plan:\s*(\S+)", re.IGNORECASE)


def has_quality_gates(prompt: str) -> bool:
    lowered = prompt.lower()
    return "quality gate" in lowered or "must satisfy" in lowered or "VERBATIM" in prompt


def has_spec_reference(prompt: str) -> bool:
    return "spec" in prompt.lower() or "## Spec Reference" in prompt


def extract_plan_path(prompt: str) -> str | None:
    """Return the path following ``Delivery Plan:``, or None."""
    match = DELIVERY_PLAN_PATTERN.search(prompt)
    return match.group(1) if match else None


def has_plan_path(prompt: str) -> bool:
    return extract_plan_path(prompt) is not None


@dataclass(frozen=True)
class Requirement:
    """One piece of content every delegation prompt must carry."""

    name: str
    label: str
    hint: str
    check: Callable[[str], bool]


REQUIREMENTS: tuple[Requirement, ...] = (
    Requirement(
        name="quality_gates",
        label="Quality gates",
        hint="copy verbatim from delivery plan",
        check=has_quality_gates,
    ),
    Requirement(
        name="spec_reference",
        label="Spec reference",
        hint="use qmd_search to find relevant section",
        check=has_spec_reference,
    ),
    Requirement(
        name="delivery_plan",
        label="Delivery plan path",
        hint='add "Delivery Plan: <path>"',
        check=has_plan_path,
    ),
)


@dataclass
class GateDecision:
    """Outcome of evaluating one delegation prompt."""

    missing: list[Requirement] = field(default_factory=list)
    plan_path: str | None = None
    mentions_context_tools: bool = True

    @property
    def allowed(self) -> bool:
        return not self.missing

    @property
    def missing_names(self) -> list[str]:
        return [req.name for req in self.missing]


def mentions_any(prompt: str, tools: list[str]) -> bool:
    return any(tool in prompt for tool in tools)


def evaluate(prompt: str, context_tools: list[str]) -> GateDecision:
    """Check a delegation prompt against every requirement. Pure."""
    return GateDecision(
        missing=[req for req in REQUIREMENTS if not req.check(prompt)],
        plan_path=extract_plan_path(prompt),
        mentions_context_tools=mentions_any(prompt, context_tools),
    )


# -- Messages -----------------------------------------------------------------


def format_block_message(decision: GateDecision) -> str:
    missing = "\n".join(f"  ✗ {req.label} ({req.hint})" for req in decision.missing)
    return (
        "PRETOOLUSE BLOCKED: Task delegation missing required elements\n\n"
        f"Missing:\n{missing}\n\n"
        "The subagent CANNOT access your context. It only knows what you include.\n"
        "Quality gates not included WILL be skipped.\n\n"
        "Required format:\n"
        "  Delivery Plan: docs/delivery-plan.md\n\n"
        "Cancel this delegation and include these elements first."
    )


def format_context_warning(context_tools: list[str]) -> str:
    tools = "\n".join(f"  - {tool}" for tool in context_tools)
    return (
        "WARNING: Task delegation doesn't mention using context tools\n\n"
        f"Consider using:\n{tools}\n\n"
        "The subagent won't have access to these tools. "
        "Ensure it has sufficient context."
    )


def build_context(plan_path: str) -> str:
    """Guidance appended to the delegate's context on ALLOW."""
    return (
        "<execution-protocol-reminder>\n"
        "Quality gates, spec reference, and delivery plan detected.\n\n"
        "Remember:\n"
        "  - Quality gates should be copied VERBATIM from delivery plan\n"
        "  - Spec sections should include full requirements, not summaries\n"
        "  - The subagent only knows what you include in this prompt\n"
        f"  - Delivery plan: {plan_path}\n"
        "</execution-protocol-reminder>"
    )
