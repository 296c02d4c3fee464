from typing import Optional

from fastapi import APIRouter, Depends, Header, Request, status

from autoglass.api.dependencies import get_services, require_staff
from autoglass.schemas.api_schema import ContactRequest, ContactRespondRequest, ContactUpdateRequest

router = APIRouter(prefix="/api/contact", tags=["contact"])


def _dump(contact) -> dict:
    return contact.model_dump(by_alias=True, mode="json", exclude={"ip_address", "user_agent"})


@router.post("", status_code=status.HTTP_201_CREATED)
async def submit_contact(
    payload: ContactRequest,
    request: Request,
    user_agent: Optional[str] = Header(None),
    services=Depends(get_services),
) -> dict:
    contact = await services.contacts.submit(
        payload.name,
        payload.email,
        payload.phone,
        payload.service,
        payload.message,
        ip_address=request.client.host if request.client else None,
        user_agent=user_agent,
    )
    return {"message": "Thank you! We will be in touch soon.", "contactId": contact.id}


@router.get("")
async def list_contacts(
    status: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
    staff_id: str = Depends(require_staff),
    services=Depends(get_services),
) -> dict:
    result = await services.contacts.list_contacts(status=status, page=page, limit=limit)
    return {
        "contacts": [_dump(c) for c in result["contacts"]],
        "pagination": result["pagination"],
    }


@router.patch("/{contact_id}")
async def update_contact(
    contact_id: str,
    payload: ContactUpdateRequest,
    staff_id: str = Depends(require_staff),
    services=Depends(get_services),
) -> dict:
    contact = await services.contacts.update(
        contact_id, status=payload.status, assigned_to=payload.assigned_to
    )
    return {"contact": _dump(contact)}


@router.post("/{contact_id}/respond")
async def respond_to_contact(
    contact_id: str,
    payload: ContactRespondRequest,
    staff_id: str = Depends(require_staff),
    services=Depends(get_services),
) -> dict:
    contact = await services.contacts.respond(contact_id, payload.message, responded_by=staff_id)
    return {"contact": _dump(contact)}
