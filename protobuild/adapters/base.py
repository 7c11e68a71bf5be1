"""
Adapter base — how the engine reaches external tools.

The engine never spawns the compiler or the formatter itself. It
builds an Action, the registry wraps it in an ExecutionContext, and
the adapter registered under ``action.adapter`` turns it into a
Receipt.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field

from protobuild.core.models.action import Action, Receipt


class ExecutionContext(BaseModel):
    """An Action plus where and how to run it."""

    action: Action
    project_root: str = "."
    dry_run: bool = False
    params: dict[str, Any] = Field(default_factory=dict)

    @property
    def working_dir(self) -> str:
        """``params['cwd']`` when given, else the project root."""
        return self.params.get("cwd") or self.project_root


class Adapter(ABC):
    """A binding to one external tool.

    Contract: ``execute`` reports every failure through the Receipt
    and does not raise. ``validate`` runs first and must not touch
    the filesystem beyond reading it.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Registry key ('protoc', 'formatter')."""

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the underlying tool can be found. Must be cheap."""

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        """Check params before anything runs: ``(ok, reason)``."""
        return True, ""

    @abstractmethod
    def execute(self, context: ExecutionContext) -> Receipt:
        """Run the tool for ``context.action``."""

    def describe(self, context: ExecutionContext) -> list[str]:
        """The argv ``execute`` would run (shown on dry runs)."""
        return []

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"
