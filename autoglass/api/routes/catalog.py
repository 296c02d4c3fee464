from typing import Optional

from fastapi import APIRouter, Depends, Query

from autoglass.api.dependencies import get_services
from autoglass.errors import ServiceNotFoundError

router = APIRouter(prefix="/api/services", tags=["services"])


@router.get("")
async def list_services(category: Optional[str] = None, services=Depends(get_services)) -> dict:
    return {"services": [s.to_dict() for s in services.catalog.all(category)]}


@router.get("/popular")
async def popular_services(services=Depends(get_services)) -> dict:
    return {"services": [s.to_dict() for s in services.catalog.popular()]}


@router.get("/{service_id}")
async def get_service(service_id: str, services=Depends(get_services)) -> dict:
    service = services.catalog.get(service_id)
    if service is None:
        raise ServiceNotFoundError()
    return {"service": service.to_dict()}


@router.get("/{service_id}/estimate")
async def estimate_price(
    service_id: str,
    vehicle_year: Optional[int] = Query(None, alias="vehicleYear"),
    services=Depends(get_services),
) -> dict:
    return services.catalog.estimate(service_id, vehicle_year)
