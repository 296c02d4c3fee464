from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from autoglass.api.dependencies import get_services, require_staff
from autoglass.scheduling import parse_day
from autoglass.schemas.api_schema import BlockSlotRequest

router = APIRouter(prefix="/api/calendar", tags=["calendar"])


@router.get("/slots/{day}")
async def available_slots(day: str, services=Depends(get_services)) -> dict:
    target = parse_day(day, services.clock.tz)
    slots = await services.resolver.available_slots(target)
    return {
        "date": target.isoformat(),
        "slots": [slot.model_dump(by_alias=True) for slot in slots],
        "count": len(slots),
    }


@router.get("/overview")
async def calendar_overview(
    start: Optional[str] = None,
    end: Optional[str] = None,
    services=Depends(get_services),
) -> dict:
    overview = await services.resolver.calendar_overview(start, end)
    return {"calendar": [day.model_dump(by_alias=True, mode="json", exclude_none=True) for day in overview]}


@router.get("/check")
async def check_slot(
    date: str,
    time_slot: str = Query(..., alias="timeSlot"),
    services=Depends(get_services),
) -> dict:
    available = await services.resolver.is_slot_available(date, time_slot)
    return {"date": date, "timeSlot": time_slot, "available": available}


@router.get("/bookings/{day}")
async def bookings_for_date(
    day: str,
    staff_id: str = Depends(require_staff),
    services=Depends(get_services),
) -> dict:
    bookings = await services.resolver.bookings_for_date(day)
    return {"bookings": [b.model_dump(by_alias=True, mode="json") for b in bookings]}


@router.get("/blocks")
async def list_blocks(
    start: str,
    end: str,
    staff_id: str = Depends(require_staff),
    services=Depends(get_services),
) -> dict:
    blocks = await services.registry.list_for_range(start, end)
    return {"blockedSlots": [b.model_dump(by_alias=True, mode="json") for b in blocks]}


@router.post("/block", status_code=status.HTTP_201_CREATED)
async def block_slot(
    payload: BlockSlotRequest,
    staff_id: str = Depends(require_staff),
    services=Depends(get_services),
) -> dict:
    blocked = await services.registry.block(
        payload.date,
        time_slot=payload.time_slot,
        is_all_day=payload.is_all_day,
        reason=payload.reason,
        description=payload.description,
        created_by=staff_id,
    )
    return {"message": "Slot blocked", "blockedSlot": blocked.model_dump(by_alias=True, mode="json")}


@router.delete("/block/{blocked_id}")
async def unblock_slot(
    blocked_id: str,
    staff_id: str = Depends(require_staff),
    services=Depends(get_services),
) -> dict:
    await services.registry.unblock(blocked_id)
    return {"message": "Slot unblocked"}
