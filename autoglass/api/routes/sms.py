from typing import Optional

from fastapi import APIRouter, Depends, Form, Response

from autoglass.api.dependencies import get_services

router = APIRouter(prefix="/api/sms", tags=["sms"])


@router.post("/webhook")
async def inbound_sms(
    from_phone: Optional[str] = Form(None, alias="From"),
    body: Optional[str] = Form(None, alias="Body"),
    services=Depends(get_services),
) -> Response:
    twiml = await services.sms_handler.handle(from_phone, body)
    return Response(content=twiml, media_type="text/xml")
