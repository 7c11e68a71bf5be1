"""
Adapter registry — the engine's only way to run a tool.

Looks up the adapter named by an Action, validates, then either
executes it or (on a dry run) reports the command it would have run.
Whatever happens, a Receipt comes back.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from protobuild.adapters.base import Adapter, ExecutionContext
from protobuild.core.models.action import Action, Receipt

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Adapters by name, plus dispatch."""

    def __init__(self, adapters: list[Adapter] | None = None):
        self._adapters: dict[str, Adapter] = {}
        for adapter in adapters or []:
            self.register(adapter)

    def register(self, adapter: Adapter) -> None:
        if adapter.name in self._adapters:
            logger.debug("Replacing adapter %s", adapter.name)
        self._adapters[adapter.name] = adapter

    def unregister(self, name: str) -> None:
        self._adapters.pop(name, None)

    def get(self, name: str) -> Adapter | None:
        return self._adapters.get(name)

    def has(self, name: str) -> bool:
        return name in self._adapters

    def list_adapters(self) -> list[str]:
        return sorted(self._adapters)

    def adapter_status(self) -> dict[str, dict[str, Any]]:
        """Availability of every registered tool, for ``config check``."""
        status: dict[str, dict[str, Any]] = {}
        for name, adapter in self._adapters.items():
            try:
                available = adapter.is_available()
            except Exception as e:  # one broken tool must not break the report
                logger.debug("Availability check for %s failed: %s", name, e)
                available = False
            status[name] = {"available": available, "type": type(adapter).__name__}
        return status

    def execute_action(
        self,
        action: Action,
        project_root: str = ".",
        dry_run: bool = False,
    ) -> Receipt:
        """Validate and run ``action`` through its adapter.

        Never raises: a missing adapter, a failed validation and an
        adapter that broke its contract all come back as failed
        Receipts.
        """
        adapter = self._adapters.get(action.adapter)
        if adapter is None:
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"No adapter registered for '{action.adapter}'",
            )

        context = ExecutionContext(
            action=action,
            project_root=project_root,
            dry_run=dry_run,
            params=action.params,
        )

        try:
            valid, reason = adapter.validate(context)
        except Exception as e:
            valid, reason = False, str(e)
        if not valid:
            return Receipt.failure(
                adapter=adapter.name,
                action_id=action.id,
                error=f"Validation failed: {reason}",
            )

        if dry_run:
            return Receipt.skip(
                adapter=adapter.name,
                action_id=action.id,
                reason="dry run",
                command=adapter.describe(context),
                metadata={"dry_run": True},
            )

        start = time.monotonic()
        try:
            receipt = adapter.execute(context)
        except Exception as e:
            logger.error("Adapter %s raised while running %s: %s", adapter.name, action.id, e)
            receipt = Receipt.failure(
                adapter=adapter.name,
                action_id=action.id,
                error=f"Unexpected error: {e}",
            )
        if not receipt.duration_ms:
            receipt.duration_ms = int((time.monotonic() - start) * 1000)
        return receipt
