"""Service catalog with pricing, durations, and descriptions."""

import logging
from dataclasses import dataclass, field
from typing import Optional

from autoglass.errors import ServiceNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServiceInfo:
    """A bookable service as currently offered."""

    id: str
    name: str
    description: str
    short_description: str
    base_price: float
    estimated_duration: int
    category: str
    features: tuple[str, ...] = field(default_factory=tuple)
    popular: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "shortDescription": self.short_description,
            "basePrice": self.base_price,
            "estimatedDuration": self.estimated_duration,
            "category": self.category,
            "features": list(self.features),
            "popular": self.popular,
        }


DEFAULT_SERVICES: tuple[ServiceInfo, ...] = (
    ServiceInfo(
        id="windshield",
        name="Windshield Replacement",
        description="Complete windshield replacement with high-quality glass and professional installation.",
        short_description="Full windshield replacement",
        base_price=199.99,
        estimated_duration=90,
        category="replacement",
        features=(
            "OEM and aftermarket glass options",
            "Same-day service available",
            "Lifetime warranty on installation",
            "Insurance claims assistance",
        ),
        popular=True,
    ),
    ServiceInfo(
        id="repair",
        name="Auto Glass Repair",
        description="Expert repair services for chips and cracks to restore your windshield integrity.",
        short_description="Chip and crack repair",
        base_price=49.99,
        estimated_duration=30,
        category="repair",
        features=(
            "Quick 30-minute repairs",
            "Prevents crack spreading",
            "Maintains original factory seal",
            "Most insurance covers 100%",
        ),
        popular=True,
    ),
    ServiceInfo(
        id="side-window",
        name="Side Window Replacement",
        description="Professional replacement of side door windows and vent glass.",
        short_description="Side window replacement",
        base_price=149.99,
        estimated_duration=60,
        category="replacement",
        features=(
            "All makes and models",
            "Factory-quality glass",
            "Proper sealing and installation",
            "Mobile service available",
        ),
    ),
    ServiceInfo(
        id="back-glass",
        name="Back Glass Replacement",
        description="Complete rear windshield replacement with defrost line integration.",
        short_description="Rear windshield replacement",
        base_price=249.99,
        estimated_duration=120,
        category="replacement",
        features=(
            "Heated rear glass available",
            "Antenna and defrost reconnection",
            "Perfect fit guarantee",
            "Competitive pricing",
        ),
    ),
    ServiceInfo(
        id="mirror",
        name="Mirror Replacement",
        description="Side mirror and rearview mirror replacement and repair services.",
        short_description="Mirror replacement & repair",
        base_price=79.99,
        estimated_duration=45,
        category="replacement",
        features=(
            "Heated mirror options",
            "Power mirror installation",
            "Glass and housing replacement",
            "Color-matched housings",
        ),
    ),
    ServiceInfo(
        id="auto-repair",
        name="General Auto Repair",
        description="Comprehensive auto repair services to keep your vehicle running smoothly.",
        short_description="General maintenance & repair",
        base_price=99.99,
        estimated_duration=120,
        category="repair",
        features=(
            "Diagnostic services",
            "Maintenance and tune-ups",
            "Brake services",
            "Engine repair",
        ),
    ),
)


class ServiceCatalog:
    """Read-only lookup over the services the shop offers."""

    def __init__(self, services: tuple[ServiceInfo, ...] = DEFAULT_SERVICES) -> None:
        self._services: dict[str, ServiceInfo] = {s.id: s for s in services}

    def get(self, service_id: str) -> Optional[ServiceInfo]:
        """Exact lookup by id. Returns None for unknown ids."""
        return self._services.get(service_id.strip().lower()) if service_id else None

    def all(self, category: Optional[str] = None) -> list[ServiceInfo]:
        services = list(self._services.values())
        if category:
            services = [s for s in services if s.category == category]
        return services

    def popular(self) -> list[ServiceInfo]:
        return [s for s in self._services.values() if s.popular]

    def estimate(self, service_id: str, vehicle_year: Optional[int] = None) -> dict:
        """Price estimate adjusted for vehicle age.

        2020 and newer pay 15% more; vehicles older than 2010 get 10% off.
        """
        service = self.get(service_id)
        if service is None:
            raise ServiceNotFoundError()

        price = service.base_price
        modifiers: list[dict[str, str]] = []
        if vehicle_year is not None:
            if vehicle_year >= 2020:
                price *= 1.15
                modifiers.append({"reason": "Newer vehicle", "modifier": "+15%"})
            elif vehicle_year < 2010:
                price *= 0.9
                modifiers.append({"reason": "Older vehicle", "modifier": "-10%"})

        return {
            "service": {"id": service.id, "name": service.name},
            "estimate": {
                "basePrice": service.base_price,
                "estimatedPrice": round(price, 2),
                "priceModifiers": modifiers,
                "estimatedDuration": service.estimated_duration,
                "note": "Final price may vary. Free quote available.",
            },
        }
