"""
Mock adapter — stands in for the compiler or the formatter in tests.

Register it under the real adapter name ("protoc", "formatter") and
the engine cannot tell the difference. Nothing is spawned; every call
is recorded, and a canned Receipt (success by default) comes back.

To stand in for the compiler it can also write files, so that output
detection sees the same thing a real protoc run would leave behind.
"""

from __future__ import annotations

from pathlib import Path

from protobuild.adapters.base import Adapter, ExecutionContext
from protobuild.core.models.action import Receipt


class MockAdapter(Adapter):
    """Recording test double with per-action canned results."""

    def __init__(self, adapter_name: str = "mock", available: bool = True):
        self._name = adapter_name
        self._available = available
        self._responses: dict[str, Receipt] = {}
        self._files: dict[str, dict[str, str]] = {}
        self.calls: list[ExecutionContext] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def is_available(self) -> bool:
        return self._available

    def set_response(self, action_id: str, receipt: Receipt) -> None:
        self._responses[action_id] = receipt

    def set_failure(self, action_id: str, stderr: str = "mock failure", return_code: int = 1) -> None:
        """Make ``action_id`` fail the way a tool does: exit code and stderr."""
        self._responses[action_id] = Receipt.failure(
            adapter=self._name,
            action_id=action_id,
            error=stderr,
            stderr=stderr,
            return_code=return_code,
        )

    def set_files(self, action_id: str, files: dict[str, str]) -> None:
        """Write ``files`` (relative path → content) into ``params['output_dir']``."""
        self._files[action_id] = dict(files)

    def execute(self, context: ExecutionContext) -> Receipt:
        self.calls.append(context)
        action_id = context.action.id

        if action_id in self._responses:
            return self._responses[action_id]

        out = context.params.get("output_dir")
        for rel, content in self._files.get(action_id, {}).items():
            path = Path(out) / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")

        return Receipt.success(
            adapter=self._name,
            action_id=action_id,
            return_code=0,
            summary=f"[mock] {self._name}:{action_id}",
            metadata={"mock": True},
        )

    def reset(self) -> None:
        self.calls.clear()
        self._responses.clear()
        self._files.clear()
