from typing import Optional

from fastapi import APIRouter, Depends

from autoglass.api.dependencies import get_services, require_staff
from autoglass.errors import InvalidRequestError
from autoglass.schemas.api_schema import StatusUpdateRequest

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/stats")
async def dashboard_stats(
    staff_id: str = Depends(require_staff),
    services=Depends(get_services),
) -> dict:
    stats = await services.ledger.stats()
    return {
        "todayBookings": stats["today_bookings"],
        "weekBookings": stats["week_bookings"],
        "monthRevenue": stats["month_revenue"],
        "confirmedToday": stats["confirmed_today"],
        "pendingPayments": stats["pending_payments"],
        "pendingContacts": await services.contacts.pending_count(),
    }


@router.get("/bookings")
async def list_bookings(
    status: Optional[str] = None,
    date: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
    staff_id: str = Depends(require_staff),
    services=Depends(get_services),
) -> dict:
    result = await services.ledger.list_bookings(status=status, day=date, page=page, limit=limit)
    return {
        "bookings": [b.model_dump(by_alias=True, mode="json") for b in result["bookings"]],
        "pagination": result["pagination"],
    }


@router.get("/contacts")
async def list_contacts(
    status: Optional[str] = None,
    page: int = 1,
    limit: int = 50,
    staff_id: str = Depends(require_staff),
    services=Depends(get_services),
) -> dict:
    result = await services.contacts.list_contacts(status=status, page=page, limit=limit)
    return {
        "contacts": [c.model_dump(by_alias=True, mode="json") for c in result["contacts"]],
        "pagination": result["pagination"],
    }


@router.get("/bookings/{booking_id}")
async def get_booking(
    booking_id: str,
    staff_id: str = Depends(require_staff),
    services=Depends(get_services),
) -> dict:
    booking = await services.ledger.get(booking_id)
    return {"booking": booking.model_dump(by_alias=True, mode="json")}


@router.patch("/bookings/{booking_id}/status")
async def update_status(
    booking_id: str,
    payload: StatusUpdateRequest,
    staff_id: str = Depends(require_staff),
    services=Depends(get_services),
) -> dict:
    booking = await services.ledger.set_status(
        booking_id,
        payload.status,
        staff_id=staff_id,
        reason=payload.reason,
        technician_notes=payload.technician_notes,
    )
    return {"booking": booking.model_dump(by_alias=True, mode="json")}


@router.post("/housekeeping/{sweep}")
async def run_sweep(
    sweep: str,
    staff_id: str = Depends(require_staff),
    services=Depends(get_services),
) -> dict:
    """Run one housekeeping sweep now instead of waiting for its schedule."""
    sweeps = {
        "reminders": services.housekeeping.send_reminders,
        "no-shows": services.housekeeping.mark_no_shows,
        "stale-pending": services.housekeeping.cancel_stale_pending,
    }
    if sweep not in sweeps:
        raise InvalidRequestError(f"Unknown sweep: {sweep}")
    return {"sweep": sweep, "affected": await sweeps[sweep]()}
