"""
FastAPI application factory.

``create_app`` wires the scheduling core, booking ledger and providers
into one application. Every collaborator can be passed in, which is how
the tests run the API against in-memory stores and a fixed clock;
anything omitted is built from ``settings``.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from autoglass.api.routes import admin, bookings, calendar, catalog, contact, payments, sms
from autoglass.booking import BookingLedger
from autoglass.clock import Clock, SystemClock
from autoglass.config import AppConfig, settings
from autoglass.contacts import ContactDesk
from autoglass.errors import BookingError, ErrorKind
from autoglass.logging_context import get_request_logger, new_request_id, set_request_id
from autoglass.notifications import Notifier
from autoglass.notifications.email import SmtpEmailClient
from autoglass.notifications.sms import TwilioSmsClient
from autoglass.payments import PaymentGateway, PayPalClient
from autoglass.scheduling import AvailabilityResolver, BlockedSlotRegistry
from autoglass.services import ServiceCatalog
from autoglass.sms_commands import SmsCommandHandler
from autoglass.store import (
    BlockedSlotStore,
    BookingStore,
    ContactStore,
    InMemoryBlockedSlotStore,
    InMemoryBookingStore,
    InMemoryContactStore,
)
from autoglass.workers import Housekeeping, start_housekeeping

logger = get_request_logger(__name__)

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.SYSTEM: 500,
    ErrorKind.UPSTREAM: 502,
}


@dataclass
class AppServices:
    """Everything a request handler may need, built once per application."""

    config: AppConfig
    clock: Clock
    catalog: ServiceCatalog
    resolver: AvailabilityResolver
    registry: BlockedSlotRegistry
    ledger: BookingLedger
    contacts: ContactDesk
    notifier: Notifier
    sms_handler: SmsCommandHandler
    housekeeping: Housekeeping


def build_services(
    config: AppConfig,
    clock: Optional[Clock] = None,
    booking_store: Optional[BookingStore] = None,
    blocked_store: Optional[BlockedSlotStore] = None,
    contact_store: Optional[ContactStore] = None,
    catalog: Optional[ServiceCatalog] = None,
    notifier: Optional[Notifier] = None,
    payments: Optional[PaymentGateway] = None,
) -> AppServices:
    clock = clock or SystemClock(config.business.tz)
    booking_store = booking_store or InMemoryBookingStore()
    blocked_store = blocked_store or InMemoryBlockedSlotStore()
    contact_store = contact_store or InMemoryContactStore()
    catalog = catalog or ServiceCatalog()
    notifier = notifier or Notifier(
        config.business,
        sms=TwilioSmsClient(config.sms),
        email=SmtpEmailClient(config.email, sender_name=config.business.name),
    )
    if payments is None and config.payment.client_id:
        payments = PayPalClient(config.payment)

    resolver = AvailabilityResolver(config.schedule, booking_store, blocked_store, clock)
    ledger = BookingLedger(
        catalog, resolver, booking_store, notifier, clock,
        policy=config.policy, payments=payments,
    )
    return AppServices(
        config=config,
        clock=clock,
        catalog=catalog,
        resolver=resolver,
        registry=BlockedSlotRegistry(blocked_store, clock),
        ledger=ledger,
        contacts=ContactDesk(contact_store, notifier, clock),
        notifier=notifier,
        sms_handler=SmsCommandHandler(ledger, notifier),
        housekeeping=Housekeeping(ledger, booking_store, notifier, clock, config.policy),
    )


def create_app(
    config: Optional[AppConfig] = None,
    services: Optional[AppServices] = None,
    run_housekeeping: bool = False,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        config: Application config. Defaults to the ``settings`` singleton.
        services: Pre-built collaborators. Defaults to ``build_services(config)``.
        run_housekeeping: Start the background sweeps for the app's lifetime.
    """
    if config is None:
        config = services.config if services else settings
    services = services or build_services(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        stop_housekeeping = None
        if run_housekeeping and config.housekeeping.enabled:
            stop_housekeeping = await start_housekeeping(
                services.housekeeping, config.housekeeping, services.clock
            )
        yield
        if stop_housekeeping is not None:
            await stop_housekeeping()
        await services.notifier.drain()

    app = FastAPI(title=f"{config.business.name} Booking API", version="1.0.0", lifespan=lifespan)
    app.state.services = services
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[config.business.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def assign_request_id(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or new_request_id()
        set_request_id(request_id)
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    @app.exception_handler(BookingError)
    async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
        status_code = STATUS_BY_KIND.get(exc.kind, 500)
        if status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=status_code, content={"error": exc.message, "code": exc.code})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        first = exc.errors()[0] if exc.errors() else {}
        field_path = ".".join(str(part) for part in first.get("loc", ())[1:])
        message = f"{field_path}: {first.get('msg')}" if field_path else "Invalid request"
        return JSONResponse(status_code=400, content={"error": message, "code": "invalid_request"})

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    for module in (calendar, catalog, bookings, contact, admin, payments, sms):
        app.include_router(module.router)

    @app.get("/health")
    @app.get("/api/health")
    async def health() -> dict:
        return {"status": "OK", "timestamp": services.clock.now().isoformat()}

    return app
