"""Undo stack for multi-step booking operations."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

UndoAction = Callable[[], Awaitable[object]]


class CompensationStack:
    """Collects undo actions as steps succeed and replays them newest first."""

    def __init__(self) -> None:
        self._actions: list[tuple[str, UndoAction]] = []

    def __len__(self) -> int:
        return len(self._actions)

    def push(self, label: str, action: UndoAction) -> None:
        self._actions.append((label, action))

    def clear(self) -> None:
        """Forget pending undo actions once the operation has succeeded."""
        self._actions.clear()

    async def unwind(self) -> list[str]:
        """Run undo actions in reverse order; return labels of the ones that failed."""
        failed: list[str] = []
        while self._actions:
            label, action = self._actions.pop()
            try:
                await action()
            except Exception:
                logger.exception("Compensation step %s failed", label)
                failed.append(label)
        return failed
