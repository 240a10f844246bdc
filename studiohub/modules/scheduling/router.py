"""Scheduling API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from studiohub.core.enums import SlotStatusEnum
from studiohub.core.security import get_current_actor
from studiohub.modules.scheduling.schemas import SlotRead
from studiohub.modules.scheduling.service import ScheduleAllocator, get_schedule_allocator
from studiohub.shared.listing import ListParams, Page, TimeWindow, build_page, get_list_params, get_time_window

router = APIRouter(prefix="/scheduling", tags=["scheduling"])


@router.get("/studios/{studio_id}/slots", response_model=Page[SlotRead])
async def list_studio_slots(
    studio_id: UUID,
    slot_status: SlotStatusEnum | None = Query(default=None, alias="status"),
    window: TimeWindow = Depends(get_time_window),
    params: ListParams = Depends(get_list_params),
    allocator: ScheduleAllocator = Depends(get_schedule_allocator),
    _actor=Depends(get_current_actor),
) -> Page[SlotRead]:
    """Studio occupancy in a start-time window, ordered by start."""
    items, total = await allocator.list_slots(studio_id, slot_status, window, params.limit, params.offset)
    serialized = [SlotRead.model_validate(item) for item in items]
    return build_page(serialized, total, params, window)
