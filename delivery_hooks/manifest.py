"""Transient artifact manifest.

Every script the agent creates with Write is recorded so the wrap-up review
can decide which ones are throwaway helpers and which are keepers. On disk::

    {
      "scripts/task-2.3-helper.sh": {
        "created": "2026-10-18T09:41:00Z",
        "task": "2.3",
        "planned": false
      }
    }

Keys are the file paths exactly as the Write event spelled them.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .config import HookSettings
from .state import atomic_write, read_document, read_pointer

logger = logging.getLogger(__name__)

UNKNOWN_TASK = "unknown"

TASK_ID_PATTERN = re.compile(r"(\d+\.\d+)")
CURRENT_TASK_PATTERN = re.compile(r"(?:\*\*)?Current Task:(?:\*\*)?\s*(\d+\.\d+)")


class ManifestEntry(BaseModel):
    """Tracking metadata for one created script."""

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    created: datetime
    inferred_task: str = Field(alias="task")
    reviewed: bool = Field(default=False, alias="planned")


# Entries that fail validation stay as the raw JSON value so a save never drops them.
Manifest = dict[str, ManifestEntry | Any]


def load_manifest(path: Path) -> Manifest:
    """Read the manifest. Missing or unparsable files load as empty.

    Each entry is validated on its own; one that fails is kept as raw data.
    """
    content = read_document(path)
    if content is None:
        return {}
    try:
        data = json.loads(content)
    except ValueError as e:
        logger.warning("Failed to load manifest %s, starting empty: %s", path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("Failed to load manifest %s, starting empty: not a JSON object", path)
        return {}

    manifest: Manifest = {}
    for file_path, raw in data.items():
        try:
            manifest[file_path] = ManifestEntry.model_validate(raw)
        except ValidationError as e:
            logger.warning("Keeping invalid manifest entry %s as-is: %s", file_path, e)
            manifest[file_path] = raw
    return manifest


def dump_manifest(manifest: Manifest) -> str:
    data = {
        file_path: (
            entry.model_dump(mode="json", by_alias=True)
            if isinstance(entry, ManifestEntry)
            else entry
        )
        for file_path, entry in manifest.items()
    }
    return json.dumps(data, indent=2) + "\n"


def save_manifest(path: Path, manifest: Manifest) -> bool:
    """Replace the manifest on disk. Returns False (and logs) on failure."""
    try:
        atomic_write(path, dump_manifest(manifest))
    except OSError as e:
        logger.warning("Failed to save manifest %s: %s", path, e)
        return False
    return True


def is_tracked(file_path: str, extensions: Iterable[str]) -> bool:
    return Path(file_path).suffix.lower() in set(extensions)


def read_current_task(plan_path: str | Path) -> str | None:
    """Return the X.Y value of the plan's ``Current Task:`` marker, if any."""
    text = read_document(plan_path)
    if text is None:
        return None
    match = CURRENT_TASK_PATTERN.search(text)
    return match.group(1) if match else None


def infer_task(file_path: str, settings: HookSettings) -> str:
    """Best-effort task id for a new script.

    Order: a ``N.N`` in the path itself, then the active plan's
    ``Current Task:`` marker, then "unknown".
    """
    match = TASK_ID_PATTERN.search(file_path)
    if match:
        return match.group(1)

    plan_path = read_pointer(settings.pointer_path) or settings.default_plan_path
    current = read_current_task(plan_path)
    if current:
        return current

    return UNKNOWN_TASK


def record_artifact(
    file_path: str,
    settings: HookSettings,
    *,
    now: datetime | None = None,
) -> ManifestEntry | None:
    """Track a newly written script. Returns the entry, or None if not tracked.

    Load, upsert and save happen without a lock; a concurrent tracker can
    overwrite this update.
    """
    if not is_tracked(file_path, settings.tracked_extensions):
        return None

    manifest = load_manifest(settings.manifest_path)
    entry = ManifestEntry(
        created=now or datetime.now(timezone.utc),
        inferred_task=infer_task(file_path, settings),
        reviewed=False,
    )
    manifest[file_path] = entry
    save_manifest(settings.manifest_path, manifest)
    return entry


def mark_reviewed(paths: Iterable[str], settings: HookSettings) -> tuple[list[str], list[str]]:
    """Flag entries as reviewed. Returns (updated, unknown) path lists.

    An invalid entry that is still a JSON object gets ``planned: true`` set
    and keeps its other keys.
    """
    manifest = load_manifest(settings.manifest_path)
    updated: list[str] = []
    unknown: list[str] = []
    for path in paths:
        entry = manifest.get(path)
        if isinstance(entry, ManifestEntry):
            manifest[path] = entry.model_copy(update={"reviewed": True})
        elif isinstance(entry, dict):
            manifest[path] = {**entry, "planned": True}
        else:
            unknown.append(path)
            continue
        updated.append(path)
    if updated:
        save_manifest(settings.manifest_path, manifest)
    return updated, unknown
