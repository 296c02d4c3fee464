"""Request-scoped dependencies shared by the routers."""

from typing import Optional

from fastapi import Header, HTTPException, Request, status

from autoglass.logging_context import get_request_logger

logger = get_request_logger(__name__)


def get_services(request: Request):
    """The ``AppServices`` container attached by ``create_app``."""
    return request.app.state.services


async def require_staff(
    request: Request,
    authorization: Optional[str] = Header(None),
    x_staff_id: Optional[str] = Header(None),
) -> str:
    """Guard for staff routes. Returns the acting staff id.

    When no staff token is configured the guard is open, which is only
    meant for local development.
    """
    token = get_services(request).config.staff_api_token
    if token and authorization != f"Bearer {token}":
        logger.warning("Rejected staff request to %s", request.url.path)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Staff authorization required")
    return x_staff_id or "staff"


async def is_staff_caller(
    request: Request,
    authorization: Optional[str] = Header(None),
) -> bool:
    """True when the request carries the configured staff bearer token.

    Unlike ``require_staff`` this never opens up when no token is set.
    """
    token = get_services(request).config.staff_api_token
    return bool(token) and authorization == f"Bearer {token}"
