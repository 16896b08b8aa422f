"""VERBATIM section detection.

A protected section looks like::

    <!-- VERBATIM: Acceptance criteria -->
    ...text that must survive edits word for word...
    <!-- END VERBATIM -->

Sections do not nest. The scanner is always either outside a section or
inside exactly one; a second start marker replaces the open section.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from rich.markup import escape

VERBATIM_START = re.compile(r"<!--\s*VERBATIM:\s*(.+?)\s*-->")
VERBATIM_END = re.compile(r"<!--\s*END\s*VERBATIM\s*-->")


@dataclass(frozen=True)
class ProtectedSection:
    """A protected range; line numbers are 1-indexed and inclusive."""

    name: str
    start_line: int
    end_line: int


class ScanState(Enum):
    OUTSIDE = "outside"
    INSIDE = "inside"


def split_lines(text: str) -> list[str]:
    """Split on ``\\n`` only, dropping a trailing ``\\r`` from each line.

    A final newline does not start an extra empty line. Other characters
    that ``str.splitlines`` treats as breaks (form feed, ``\\u2028``) stay
    inside their line so numbers match what an editor shows.
    """
    if not text:
        return []
    lines = [line.removesuffix("\r") for line in text.split("\n")]
    if lines[-1] == "":
        lines.pop()
    return lines


def find_protected_sections(text: str) -> list[ProtectedSection]:
    """Return every protected section in order of opening.

    An end marker with no open section is ignored. A section still open at
    the end of the text runs to the last line.
    """
    sections: list[ProtectedSection] = []
    lines = split_lines(text)

    state = ScanState.OUTSIDE
    open_name = ""
    open_line = 0

    for lineno, line in enumerate(lines, start=1):
        start = VERBATIM_START.search(line)
        if start:
            state = ScanState.INSIDE
            open_name = start.group(1).strip()
            open_line = lineno
        elif state is ScanState.INSIDE and VERBATIM_END.search(line):
            sections.append(ProtectedSection(open_name, open_line, lineno))
            state = ScanState.OUTSIDE

    if state is ScanState.INSIDE:
        sections.append(ProtectedSection(open_name, open_line, len(lines)))

    return sections


def format_warning(path: str, sections: list[ProtectedSection]) -> str:
    """Render the advisory shown before an edit touches a protected file."""
    listing = "\n".join(
        f"  • {escape(s.name)} (lines {s.start_line}-{s.end_line})" for s in sections
    )
    return (
        f"[bold yellow]VERBATIM SECTION EDIT WARNING[/bold yellow]\n\n"
        f"{escape(path)} contains {len(sections)} VERBATIM section(s):\n"
        f"{listing}\n\n"
        "Remember:\n"
        "  - Make MINIMAL changes only\n"
        "  - Add new content, don't rewrite existing\n"
        "  - Preserve exact wording where possible\n"
        "  - VERBATIM sections must NOT be summarized or reworded\n\n"
        "If the user didn't explicitly approve this edit, cancel and ask first."
    )
