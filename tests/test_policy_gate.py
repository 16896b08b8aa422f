"""Unit tests for the delegation gate rules."""

from __future__ import annotations

import pytest

from delivery_hooks.policy_gate import (
    REQUIREMENTS,
    build_context,
    evaluate,
    extract_plan_path,
    format_block_message,
    has_quality_gates,
    has_spec_reference,
)

CONTEXT_TOOLS = ["qmd_search", "grepai", "GetCodeContext", "GetProjectStructure"]

GATES = "Must satisfy quality gates."
SPEC = "## Spec Reference"
PLAN = "Delivery Plan: docs/plan.md"


class TestRules:
    @pytest.mark.parametrize(
        "prompt",
        ["All Quality Gates apply", "You MUST SATISFY these", "see VERBATIM block"],
    )
    def test_quality_gates_present(self, prompt: str) -> None:
        assert has_quality_gates(prompt)

    def test_verbatim_token_is_case_sensitive(self) -> None:
        assert not has_quality_gates("copy this verbatim")

    def test_quality_gates_absent(self) -> None:
        assert not has_quality_gates("just do the thing")

    @pytest.mark.parametrize("prompt", ["read the SPEC", "## Spec Reference", "specification"])
    def test_spec_reference_present(self, prompt: str) -> None:
        assert has_spec_reference(prompt)

    def test_spec_reference_absent(self) -> None:
        assert not has_spec_reference("implement the feature")

    def test_plan_path_extracted(self) -> None:
        assert extract_plan_path("x\nDelivery Plan: docs/plan.md\ny") == "docs/plan.md"

    def test_plan_label_case_insensitive(self) -> None:
        assert extract_plan_path("delivery   plan:   plans/a.md extra") == "plans/a.md"

    def test_plan_path_missing(self) -> None:
        assert extract_plan_path("Delivery plan is in docs") is None

    def test_requirement_names_in_order(self) -> None:
        assert [r.name for r in REQUIREMENTS] == [
            "quality_gates",
            "spec_reference",
            "delivery_plan",
        ]


class TestEvaluate:
    def test_all_present_allows(self) -> None:
        decision = evaluate(f"{GATES} {SPEC}. {PLAN}", CONTEXT_TOOLS)
        assert decision.allowed
        assert decision.missing == []
        assert decision.plan_path == "docs/plan.md"

    @pytest.mark.parametrize(
        ("prompt", "missing"),
        [
            (f"{SPEC}. {PLAN}", ["quality_gates"]),
            (f"{GATES} {PLAN}", ["spec_reference"]),
            (f"{GATES} {SPEC}.", ["delivery_plan"]),
            ("nothing useful here", ["quality_gates", "spec_reference", "delivery_plan"]),
        ],
    )
    def test_missing_elements_named_exactly(self, prompt: str, missing: list[str]) -> None:
        assert evaluate(prompt, CONTEXT_TOOLS).missing_names == missing

    def test_context_tools_detected(self) -> None:
        assert evaluate("use grepai first", CONTEXT_TOOLS).mentions_context_tools
        assert not evaluate("no tools", CONTEXT_TOOLS).mentions_context_tools


class TestMessages:
    def test_block_message_names_only_missing(self) -> None:
        decision = evaluate(f"{GATES} {SPEC}.", CONTEXT_TOOLS)
        message = format_block_message(decision)
        assert "Delivery plan path" in message
        assert "Quality gates (" not in message
        assert "Spec reference (" not in message
        assert "Delivery Plan: docs/delivery-plan.md" in message

    def test_context_echoes_plan_path(self) -> None:
        assert "Delivery plan: plans/sprint 4.md" in build_context("plans/sprint 4.md")
