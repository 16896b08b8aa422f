"""Delivery plan discovery and incomplete-task scanning.

Resolution order:
1. The plan pointer written by the delegation gate, if the file still exists
2. Standard plan filenames, first existing wins
3. Markdown files in the search directories, newest first

The first plan found is the only one scanned.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from rich.markup import escape

from .config import HookSettings
from .state import read_document, read_pointer

logger = logging.getLogger(__name__)

PENDING_MARKER = "- [ ]"
IN_PROGRESS_MARKER = "- [~]"
DONE_MARKER = "- [x]"


@dataclass(frozen=True)
class PlanScanResult:
    path: str
    has_incomplete_tasks: bool
    pending: int = 0
    in_progress: int = 0
    done: int = 0


def scan_plan_text(path: str, text: str) -> PlanScanResult:
    """Classify plan text. Only pending and in-progress markers count as incomplete."""
    pending = text.count(PENDING_MARKER)
    in_progress = text.count(IN_PROGRESS_MARKER)
    return PlanScanResult(
        path=path,
        has_incomplete_tasks=pending > 0 or in_progress > 0,
        pending=pending,
        in_progress=in_progress,
        done=text.count(DONE_MARKER),
    )


def _markdown_newest_first(directory: Path) -> list[Path]:
    entries = []
    try:
        for entry in directory.iterdir():
            if entry.suffix != ".md" or not entry.is_file():
                continue
            entries.append((entry.stat().st_mtime, entry.name, entry))
    except OSError as e:
        logger.debug("Skipping plan directory %s: %s", directory, e)
        return []
    # Newest first; name breaks mtime ties so the order is stable
    entries.sort(key=lambda item: (-item[0], item[1]))
    return [entry for _, _, entry in entries]


def iter_plan_candidates(settings: HookSettings) -> Iterator[str]:
    """Yield candidate plan paths in resolution order, lazily."""
    pointer = read_pointer(settings.pointer_path)
    if pointer:
        yield pointer

    for path in settings.standard_plan_paths:
        yield str(path)

    for directory in settings.plan_search_dirs:
        if directory.is_dir():
            for path in _markdown_newest_first(directory):
                yield str(path)


def locate_plan(settings: HookSettings) -> PlanScanResult | None:
    """Find the active plan and scan it. None if no plan exists anywhere."""
    for candidate in iter_plan_candidates(settings):
        if not Path(candidate).is_file():
            continue
        text = read_document(candidate)
        if text is None:
            continue
        return scan_plan_text(candidate, text)
    return None


def format_reminder(result: PlanScanResult) -> str:
    return (
        "[bold yellow]DELIVERY PLAN REMINDER[/bold yellow]\n"
        f"You have incomplete tasks in your delivery plan ({escape(result.path)}).\n\n"
        "After verifying code quality, update the delivery plan:\n"
        "  - Mark completed tasks as \\[x]\n"
        "  - Update current task pointer if needed\n"
        "  - Note any blockers or deviations"
    )
