"""
Stamp file persistence — atomic read/write for the generation Stamp.

The stamp is stored as JSON (default .protobuild/stamp.json). Writes
are atomic (write to temp file, then rename) so a crash mid-write can
never leave a stamp that claims outputs are fresh when they aren't.
"""

from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path

from pydantic import ValidationError

from protobuild.core.models.stamp import Stamp

logger = logging.getLogger(__name__)


def load_stamp(path: Path) -> Stamp | None:
    """Load the stamp from a JSON file.

    Returns:
        The Stamp, or None if the file is missing or unreadable —
        either way the caller must treat outputs as stale.
    """
    if not path.is_file():
        logger.debug("No stamp at %s", path)
        return None

    try:
        raw = path.read_text(encoding="utf-8")
        data = json.loads(raw)
        stamp = Stamp.model_validate(data)
        logger.debug("Loaded stamp from %s (created_at=%s)", path, stamp.created_at)
        return stamp
    except json.JSONDecodeError as e:
        logger.warning("Corrupt stamp file %s: %s — treating outputs as stale", path, e)
        return None
    except (OSError, ValidationError) as e:
        logger.warning("Cannot load stamp from %s: %s — treating outputs as stale", path, e)
        return None


def save_stamp(stamp: Stamp, path: Path) -> None:
    """Save the stamp to a JSON file (atomic write).

    Args:
        stamp: The stamp to save.
        path: Target path for the stamp file.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    data = stamp.model_dump(mode="json")
    content = json.dumps(data, indent=2, sort_keys=True, ensure_ascii=False) + "\n"

    # Atomic write: temp file in same directory, then rename
    try:
        _fd, tmp_path = tempfile.mkstemp(
            dir=path.parent,
            prefix=".stamp_",
            suffix=".tmp",
        )
        tmp = Path(tmp_path)
        try:
            with open(_fd, "w", encoding="utf-8") as f:
                f.write(content)
            tmp.replace(path)
            logger.debug("Stamp saved to %s", path)
        except Exception:
            tmp.unlink(missing_ok=True)
            raise
    except OSError as e:
        logger.error("Failed to save stamp to %s: %s", path, e)
        raise


def clear_stamp(path: Path) -> None:
    """Remove the stamp so the next invocation regenerates."""
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Cannot remove stamp %s: %s", path, e)
