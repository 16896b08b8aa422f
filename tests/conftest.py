"""Shared pytest fixtures for delivery_hooks tests."""

from __future__ import annotations

import io
import json
from pathlib import Path
from typing import Any

import pytest
from rich.console import Console

from delivery_hooks.config import HookSettings


@pytest.fixture
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Empty project directory as cwd, with an isolated HOME."""
    home = tmp_path / "home"
    home.mkdir()
    root = tmp_path / "project"
    root.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("DELIVERY_HOOKS_CONFIG", raising=False)
    monkeypatch.chdir(root)
    return root


@pytest.fixture
def settings(project: Path) -> HookSettings:
    return HookSettings()


@pytest.fixture
def console() -> Console:
    """Console writing to an in-memory buffer; read it with ``output(console)``."""
    return Console(file=io.StringIO(), soft_wrap=True, width=200, color_system=None)


def output(console: Console) -> str:
    return console.file.getvalue()


def event(tool_name: str, **tool_input: Any) -> bytes:
    return json.dumps({"tool_name": tool_name, "tool_input": tool_input}).encode()
