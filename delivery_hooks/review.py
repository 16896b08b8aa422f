"""Post-delegation review prompts."""

from __future__ import annotations

import logging
import subprocess

logger = logging.getLogger(__name__)

REVIEW_CHECKPOINT = """\
[bold]CODE REVIEW CHECKPOINT[/bold]

Before accepting this Task as complete, review the changes:

MINIMAL CHANGES CHECK:
   \\[ ] Does this change ONLY what was requested?
   \\[ ] Are there "helpful" additions not in the spec?
   \\[ ] Can any lines be removed while still satisfying requirements?

BEST PRACTICES CHECK:
   \\[ ] Does code follow project patterns?
   \\[ ] Are naming conventions consistent?
   \\[ ] Is error handling appropriate?

QUALITY GATE CHECK:
   \\[ ] Are ALL quality gates satisfied?
   \\[ ] Tests written and passing?
   \\[ ] No breaking changes to existing code?

Use git diff to see exact changes.
If ANY check fails: request fixes before marking complete."""

UNCOMMITTED_WARNING = """\
[bold yellow]WARNING: There are uncommitted changes after Task completion.[/bold yellow]

After verification passes, remember to:
  1. Review changes with: git diff
  2. Stage relevant files: git add <files>
  3. Create a commit: git commit

Uncommitted work may be lost. Commit before proceeding to next task."""


def git_status(timeout: float = 10.0) -> str | None:
    """Return ``git status --porcelain`` output, or None if git is unavailable.

    Not being in a repository, git missing and timeouts all count as
    unavailable.
    """
    try:
        proc = subprocess.run(
            ["git", "status", "--porcelain"],
            capture_output=True,
            text=True,
            timeout=timeout,
            check=True,
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug("git status unavailable: %s", e)
        return None
    return proc.stdout


def has_uncommitted_changes(timeout: float = 10.0) -> bool:
    status = git_status(timeout)
    return bool(status and status.strip())
