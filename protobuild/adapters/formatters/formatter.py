"""
Formatter adapter — normalize the style of generated code.

Formatters are run as modules of the current interpreter
(``python -m ruff format <dir>``), so they resolve to the same
environment protobuild is installed in. Every formatter in the table
rewrites files in place: no renames, no new files, no deletions.
"""

from __future__ import annotations

import importlib.util
import logging
import sys
from pathlib import Path
from typing import Any

from protobuild.adapters.base import ExecutionContext
from protobuild.adapters.shell.command import ToolAdapter

logger = logging.getLogger(__name__)


# ── Formatter definitions ───────────────────────────────────────


_FORMATTERS: dict[str, dict[str, Any]] = {
    "ruff-format": {
        "name": "Ruff Format",
        "module": "ruff",
        "args": ["format"],
        "install_hint": "pip install ruff",
    },
    "black": {
        "name": "Black",
        "module": "black",
        "args": ["-q"],
        "install_hint": "pip install black",
    },
}


def formatter_tools() -> list[str]:
    """Names of the formatters this adapter can run."""
    return list(_FORMATTERS)


class FormatterAdapter(ToolAdapter):
    """Format a directory tree in place.

    Action params:
        target (str): Directory to format (recursively).
    """

    def __init__(self, tool: str = "ruff-format", extra_args: list[str] | None = None):
        if tool not in _FORMATTERS:
            raise ValueError(
                f"Unknown formatter '{tool}'. Valid: {', '.join(sorted(_FORMATTERS))}"
            )
        self._tool = tool
        self._spec = _FORMATTERS[tool]
        self._extra_args = list(extra_args or [])

    @property
    def name(self) -> str:
        return "formatter"

    @property
    def tool(self) -> str:
        return self._tool

    @property
    def install_hint(self) -> str:
        return self._spec["install_hint"]

    def is_available(self) -> bool:
        try:
            return importlib.util.find_spec(self._spec["module"]) is not None
        except (ImportError, ValueError):
            return False

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        target = context.params.get("target")
        if not target:
            return False, "Missing required param: 'target'"
        if not context.dry_run and not Path(target).is_dir():
            return False, f"Target directory does not exist: {target}"
        return super().validate(context)

    def build_command(self, context: ExecutionContext) -> list[str]:
        return [
            sys.executable,
            "-m",
            self._spec["module"],
            *self._spec["args"],
            *self._extra_args,
            str(context.params["target"]),
        ]
