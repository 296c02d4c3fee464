from fastapi import APIRouter, Depends

from autoglass.api.dependencies import get_services
from autoglass.schemas.api_schema import CaptureOrderRequest, CreateOrderRequest

router = APIRouter(prefix="/api/payments", tags=["payments"])


@router.post("/create-order")
async def create_order(payload: CreateOrderRequest, services=Depends(get_services)) -> dict:
    order = await services.ledger.start_payment(payload.booking_number)
    return {"orderId": order["order_id"], "approvalUrl": order["approval_url"]}


@router.post("/capture-order")
async def capture_order(payload: CaptureOrderRequest, services=Depends(get_services)) -> dict:
    booking = await services.ledger.capture_payment(payload.booking_number, payload.order_id)
    return {
        "message": "Payment successful",
        "booking": {
            "bookingNumber": booking.booking_number,
            "status": booking.status.value,
            "paymentStatus": booking.payment.status.value,
        },
    }


@router.get("/status/{booking_number}")
async def payment_status(booking_number: str, services=Depends(get_services)) -> dict:
    result = await services.ledger.payment_status(booking_number)
    return {
        "bookingNumber": result["booking_number"],
        "paymentStatus": result["payment_status"],
        "totalAmount": result["total_amount"],
        "paidAmount": result["paid_amount"],
    }
