"""Process-discipline hooks for Claude Code delegation workflows.

Each hook is a short-lived process launched by the host once per tool event.
Hooks share no in-process state; everything they remember lives in files
under the project's ``.claude/`` directory.
"""

from __future__ import annotations

__version__ = "0.3.0"

# -- Exit Codes ---------------------------------------------------------------

EXIT_ALLOW = 0
EXIT_FAILURE = 1
EXIT_BLOCK = 2

# -- Errors -------------------------------------------------------------------


class DeliveryHooksError(Exception):
    """Base class for errors raised inside delivery_hooks."""


class ConfigError(DeliveryHooksError):
    """Raised when a settings file exists but cannot be used."""


__all__ = [
    "EXIT_ALLOW",
    "EXIT_BLOCK",
    "EXIT_FAILURE",
    "ConfigError",
    "DeliveryHooksError",
    "__version__",
]
