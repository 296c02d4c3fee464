from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, status

from autoglass.api.dependencies import get_services, is_staff_caller
from autoglass.schemas.api_schema import CancelBookingRequest, CreateBookingRequest
from autoglass.schemas.booking_schema import CancelledBy

router = APIRouter(prefix="/api/bookings", tags=["bookings"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: CreateBookingRequest,
    x_customer_id: Optional[str] = Header(None),
    services=Depends(get_services),
) -> dict:
    contact = {
        "first_name": payload.first_name,
        "last_name": payload.last_name,
        "email": payload.email,
        "phone": payload.phone,
    }
    # The auth layer forwards the signed-in customer's id; contact fields still come from the form.
    customer = {"id": x_customer_id, **contact} if x_customer_id else None
    insurance = None
    if payload.use_insurance:
        info = payload.insurance_info.model_dump() if payload.insurance_info else {}
        insurance = {"use_insurance": True, **info}

    booking = await services.ledger.create(
        payload.service_id,
        payload.vehicle,
        payload.appointment_date,
        payload.time_slot,
        guest=None if customer else contact,
        customer=customer,
        is_mobile_service=payload.is_mobile_service,
        location=payload.location,
        insurance=insurance,
        notes=payload.notes,
    )
    return {"message": "Booking created", "booking": booking.summary()}


@router.get("")
async def my_bookings(
    status: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
    x_customer_id: Optional[str] = Header(None),
    services=Depends(get_services),
) -> dict:
    result = await services.ledger.list_for_customer(
        x_customer_id or "", status=status, page=page, limit=limit
    )
    return {
        "bookings": [b.model_dump(by_alias=True, mode="json") for b in result["bookings"]],
        "pagination": result["pagination"],
    }


@router.get("/lookup")
async def lookup_booking(
    booking_number: str = Query("", alias="bookingNumber"),
    email: str = "",
    services=Depends(get_services),
) -> dict:
    booking = await services.ledger.lookup(booking_number, email)
    return {"booking": booking.model_dump(by_alias=True, mode="json")}


@router.get("/{booking_id}")
async def get_booking(
    booking_id: str,
    x_customer_id: Optional[str] = Header(None),
    staff: bool = Depends(is_staff_caller),
    services=Depends(get_services),
) -> dict:
    booking = await services.ledger.authorize(booking_id, staff=staff, customer_id=x_customer_id)
    return {"booking": booking.model_dump(by_alias=True, mode="json")}


@router.post("/{booking_id}/cancel")
async def cancel_booking(
    booking_id: str,
    payload: Optional[CancelBookingRequest] = None,
    x_customer_id: Optional[str] = Header(None),
    staff: bool = Depends(is_staff_caller),
    services=Depends(get_services),
) -> dict:
    payload = payload or CancelBookingRequest()
    await services.ledger.authorize(
        booking_id,
        staff=staff,
        customer_id=x_customer_id,
        booking_number=payload.booking_number,
        email=payload.email,
    )
    outcome = await services.ledger.cancel(
        booking_id,
        actor=CancelledBy.ADMIN if staff else CancelledBy.CUSTOMER,
        reason=payload.reason,
    )
    return {
        "message": "Booking cancelled",
        "booking": outcome.booking.model_dump(by_alias=True, mode="json"),
        "refundAmount": outcome.refund_amount,
    }
