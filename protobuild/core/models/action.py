"""
Action and Receipt models — the contract between engine and tools.

The engine describes each external step as an Action and hands it to
the adapter registry; the adapter answers with a Receipt. Receipts
carry the raw facts of the child process (argv, exit code, stdout,
stderr) so the engine can decide what a failure means. A tool that
crashes, is missing, or gets killed still produces a Receipt.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

ReceiptStatus = Literal["ok", "skipped", "failed"]


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class Action(BaseModel):
    """One pipeline step, addressed to an adapter by name."""

    id: str                         # "generate", "format"
    adapter: str                    # registry key: "protoc", "formatter"
    description: str = ""
    params: dict[str, Any] = Field(default_factory=dict)


class Receipt(BaseModel):
    """What happened when an adapter ran an Action.

    ``return_code`` stays None when no process was started (missing
    executable, failed validation, dry run).
    """

    adapter: str
    action_id: str
    status: ReceiptStatus = "ok"

    command: list[str] = Field(default_factory=list)
    return_code: int | None = None
    stdout: str = ""                # verbatim
    stderr: str = ""                # verbatim

    summary: str = ""
    error: str | None = None

    started_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @property
    def skipped(self) -> bool:
        return self.status == "skipped"

    @property
    def diagnostics(self) -> str:
        """The tool's own error output, falling back to our error message."""
        return self.stderr or (self.error or "")

    @classmethod
    def success(cls, adapter: str, action_id: str, **fields: Any) -> Receipt:
        return cls(adapter=adapter, action_id=action_id, status="ok", **fields)

    @classmethod
    def failure(cls, adapter: str, action_id: str, error: str, **fields: Any) -> Receipt:
        return cls(adapter=adapter, action_id=action_id, status="failed", error=error, **fields)

    @classmethod
    def skip(cls, adapter: str, action_id: str, reason: str = "", **fields: Any) -> Receipt:
        return cls(adapter=adapter, action_id=action_id, status="skipped", summary=reason, **fields)
