from __future__ import annotations

import pytest

from studiohub.modules.booking.compensation import CompensationStack


@pytest.mark.asyncio
async def test_unwind_runs_actions_newest_first() -> None:
    calls: list[str] = []
    stack = CompensationStack()

    async def undo(label: str) -> None:
        calls.append(label)

    stack.push("release slot", lambda: undo("slot"))
    stack.push("release equipment", lambda: undo("equipment"))

    failed = await stack.unwind()

    assert calls == ["equipment", "slot"]
    assert failed == []
    assert len(stack) == 0


@pytest.mark.asyncio
async def test_failing_action_does_not_stop_the_rest() -> None:
    calls: list[str] = []
    stack = CompensationStack()

    async def undo_ok() -> None:
        calls.append("slot")

    async def undo_broken() -> None:
        raise RuntimeError("storage unavailable")

    stack.push("release slot", undo_ok)
    stack.push("release equipment", undo_broken)

    failed = await stack.unwind()

    assert failed == ["release equipment"]
    assert calls == ["slot"]


@pytest.mark.asyncio
async def test_cleared_stack_has_nothing_to_undo() -> None:
    calls: list[str] = []
    stack = CompensationStack()

    async def undo() -> None:
        calls.append("slot")

    stack.push("release slot", undo)
    stack.clear()

    assert await stack.unwind() == []
    assert calls == []
