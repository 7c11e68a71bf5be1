"""
Tool adapter — run an external tool as a blocking child process.

This is the most fundamental adapter: it spawns a command, waits for
it, and captures its exit status and output. The compiler and
formatter adapters are built on top of it; they only decide which
argv to run.
"""

from __future__ import annotations

import logging
import subprocess
import time
from abc import abstractmethod
from pathlib import Path

from protobuild.adapters.base import Adapter, ExecutionContext
from protobuild.core.models.action import Receipt, _now_iso

logger = logging.getLogger(__name__)


class ToolAdapter(Adapter):
    """Run a tool and capture output.

    Subclasses implement ``build_command``. The command is executed
    without a shell, in ``context.working_dir``.

    Action params (common):
        timeout (float | None): Timeout in seconds (default: none).
        cwd (str): Override working directory (default: project root).
    """

    @abstractmethod
    def build_command(self, context: ExecutionContext) -> list[str]:
        """Assemble the argv for this action."""

    def describe(self, context: ExecutionContext) -> list[str]:
        return self.build_command(context)

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        cwd = context.working_dir
        if cwd and not Path(cwd).is_dir():
            return False, f"Working directory does not exist: {cwd}"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        try:
            command = self.build_command(context)
        except (KeyError, TypeError, ValueError) as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Cannot build command: {e}",
            )

        timeout = context.params.get("timeout")
        cwd = context.working_dir
        started_at = _now_iso()

        logger.debug("Executing: %s (cwd=%s)", " ".join(command), cwd)
        start = time.monotonic()

        try:
            result = subprocess.run(
                command,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except FileNotFoundError:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Executable not found: {command[0]}",
                command=command,
                started_at=started_at,
            )
        except subprocess.TimeoutExpired as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Command timed out after {timeout}s",
                command=command,
                stdout=_as_text(e.stdout),
                stderr=_as_text(e.stderr),
                started_at=started_at,
                metadata={"timeout": timeout},
            )
        except OSError as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Command execution error: {e}",
                command=command,
                started_at=started_at,
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        fields = {
            "command": command,
            "return_code": result.returncode,
            "stdout": result.stdout,
            "stderr": result.stderr,
            "started_at": started_at,
            "duration_ms": elapsed_ms,
        }

        if result.returncode == 0:
            return Receipt.success(
                adapter=self.name,
                action_id=context.action.id,
                summary=result.stdout.strip(),
                **fields,
            )

        if result.returncode < 0:
            error = f"{command[0]} terminated by signal {-result.returncode}"
        else:
            error = result.stderr or f"Command exited with code {result.returncode}"
        return Receipt.failure(
            adapter=self.name,
            action_id=context.action.id,
            error=error,
            **fields,
        )


def _as_text(data: str | bytes | None) -> str:
    """Normalize partial output captured from a timed-out process."""
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data
