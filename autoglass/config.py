"""
Centralized configuration with environment variable overrides.

Business hours, slot geometry, cancellation policy and provider
credentials all live here. Core components receive the relevant
section at construction time; only the composition root reads the
``settings`` singleton.
"""

import logging
import os
from dataclasses import dataclass, field
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

WEEKDAYS: tuple[str, ...] = (
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday",
)

_DEFAULT_HOURS: dict[str, str] = {
    "monday": "08:00-18:00",
    "tuesday": "08:00-18:00",
    "wednesday": "08:00-18:00",
    "thursday": "08:00-18:00",
    "friday": "08:00-18:00",
    "saturday": "09:00-16:00",
    "sunday": "closed",
}


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


def _safe_bool(env_var: str, default: str) -> bool:
    raw = os.getenv(env_var, default).strip().lower()
    if raw in {"1", "true", "yes", "on"}:
        return True
    if raw in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"Invalid boolean for {env_var}: {raw!r}")


def minutes_of(time_str: str) -> int:
    """Convert an ``HH:MM`` string to minutes since midnight."""
    hours, minutes = time_str.split(":")
    return int(hours) * 60 + int(minutes)


@dataclass(frozen=True)
class DayHours:
    """Opening hours for a single weekday."""

    open: str = "00:00"
    close: str = "00:00"
    is_open: bool = False

    @property
    def label(self) -> str:
        return f"{self.open} - {self.close}" if self.is_open else "Closed"


def parse_day_hours(raw: str) -> DayHours:
    """Parse ``"08:00-18:00"`` or ``"closed"`` into a DayHours."""
    value = raw.strip().lower()
    if value in {"closed", "off", ""}:
        return DayHours()
    try:
        open_str, close_str = (part.strip() for part in value.split("-"))
        minutes_of(open_str)
        minutes_of(close_str)
    except ValueError:
        raise ValueError(f"Invalid business hours: {raw!r}") from None
    return DayHours(open=open_str, close=close_str, is_open=True)


def _load_business_hours() -> dict[str, DayHours]:
    return {
        day: parse_day_hours(os.getenv(f"BUSINESS_HOURS_{day.upper()}", default))
        for day, default in _DEFAULT_HOURS.items()
    }


@dataclass(frozen=True)
class BusinessConfig:
    """Business identity and contact details used in customer messages."""

    name: str = os.getenv("BUSINESS_NAME", "Los Auto & Glass")
    phone: str = os.getenv("BUSINESS_PHONE", "(385) 424-6781")
    notify_phone: str = os.getenv("BUSINESS_NOTIFY_PHONE", "")
    notify_email: str = os.getenv("BUSINESS_EMAIL", "")
    website: str = os.getenv("BUSINESS_WEBSITE", "lossautoglass.com")
    timezone: str = os.getenv("BUSINESS_TIMEZONE", "America/Denver")
    frontend_url: str = os.getenv("FRONTEND_URL", "http://localhost:3000")

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


@dataclass(frozen=True)
class ScheduleConfig:
    """Business hours and slot geometry."""

    hours_by_weekday: dict[str, DayHours] = field(default_factory=_load_business_hours)
    slot_duration_minutes: int = _safe_int("SLOT_DURATION_MINUTES", "30")
    # Reserved; not applied between generated slots.
    buffer_minutes: int = _safe_int("SLOT_BUFFER_MINUTES", "15")
    max_bookings_per_slot: int = _safe_int("MAX_BOOKINGS_PER_SLOT", "2")
    advance_booking_days: int = _safe_int("ADVANCE_BOOKING_DAYS", "30")
    min_notice_hours: float = _safe_float("MIN_NOTICE_HOURS", "2")

    def hours_for(self, weekday_name: str) -> DayHours:
        return self.hours_by_weekday.get(weekday_name, DayHours())


@dataclass(frozen=True)
class PolicyConfig:
    """Cancellation, refund and housekeeping thresholds."""

    full_refund_hours: float = _safe_float("FULL_REFUND_HOURS", "48")
    cancellation_cutoff_hours: float = _safe_float("CANCELLATION_CUTOFF_HOURS", "24")
    partial_refund_ratio: float = _safe_float("PARTIAL_REFUND_RATIO", "0.5")
    no_show_grace_hours: float = _safe_float("NO_SHOW_GRACE_HOURS", "2")
    stale_pending_hours: float = _safe_float("STALE_PENDING_HOURS", "24")


@dataclass(frozen=True)
class HousekeepingConfig:
    """Schedule of the background sweeps."""

    enabled: bool = _safe_bool("HOUSEKEEPING_ENABLED", "true")
    reminder_hour: int = _safe_int("REMINDER_HOUR", "10")
    no_show_interval_seconds: int = _safe_int("NO_SHOW_INTERVAL_SECONDS", "3600")
    pending_cleanup_hour: int = _safe_int("PENDING_CLEANUP_HOUR", "0")


@dataclass(frozen=True)
class SmsConfig:
    """Twilio credentials. SMS is disabled when any value is missing."""

    account_sid: str = os.getenv("TWILIO_ACCOUNT_SID", "")
    auth_token: str = os.getenv("TWILIO_AUTH_TOKEN", "")
    from_number: str = os.getenv("TWILIO_PHONE_NUMBER", "")
    timeout_seconds: float = _safe_float("TWILIO_TIMEOUT_SECONDS", "10")

    @property
    def enabled(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.from_number)


@dataclass(frozen=True)
class EmailConfig:
    """SMTP settings. Email is disabled without user and password."""

    host: str = os.getenv("EMAIL_HOST", "smtp.gmail.com")
    port: int = _safe_int("EMAIL_PORT", "587")
    user: str = os.getenv("EMAIL_USER", "")
    password: str = os.getenv("EMAIL_PASS", "")
    from_address: str = os.getenv("EMAIL_FROM", "")

    @property
    def enabled(self) -> bool:
        return bool(self.user and self.password)


@dataclass(frozen=True)
class PaymentConfig:
    """PayPal checkout settings."""

    client_id: str = os.getenv("PAYPAL_CLIENT_ID", "")
    client_secret: str = os.getenv("PAYPAL_CLIENT_SECRET", "")
    mode: str = os.getenv("PAYPAL_MODE", "sandbox")
    currency: str = os.getenv("PAYPAL_CURRENCY", "USD")
    timeout_seconds: float = _safe_float("PAYPAL_TIMEOUT_SECONDS", "30")

    @property
    def api_base(self) -> str:
        if self.mode == "live":
            return "https://api-m.paypal.com"
        return "https://api-m.sandbox.paypal.com"


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    business: BusinessConfig = field(default_factory=BusinessConfig)
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    policy: PolicyConfig = field(default_factory=PolicyConfig)
    housekeeping: HousekeepingConfig = field(default_factory=HousekeepingConfig)
    sms: SmsConfig = field(default_factory=SmsConfig)
    email: EmailConfig = field(default_factory=EmailConfig)
    payment: PaymentConfig = field(default_factory=PaymentConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    staff_api_token: str = os.getenv("STAFF_API_TOKEN", "")


def _validate_schedule(schedule: ScheduleConfig) -> None:
    for day in WEEKDAYS:
        hours = schedule.hours_for(day)
        if hours.is_open and minutes_of(hours.open) >= minutes_of(hours.close):
            raise ValueError(
                f"BUSINESS_HOURS_{day.upper()} must open before it closes, "
                f"got {hours.open}-{hours.close}"
            )
    if schedule.slot_duration_minutes < 1:
        raise ValueError(
            f"SLOT_DURATION_MINUTES must be >= 1, got {schedule.slot_duration_minutes}"
        )
    if schedule.max_bookings_per_slot < 1:
        raise ValueError(
            f"MAX_BOOKINGS_PER_SLOT must be >= 1, got {schedule.max_bookings_per_slot}"
        )
    if schedule.advance_booking_days < 0:
        raise ValueError(
            f"ADVANCE_BOOKING_DAYS must be >= 0, got {schedule.advance_booking_days}"
        )
    if schedule.min_notice_hours < 0:
        raise ValueError(
            f"MIN_NOTICE_HOURS must be >= 0, got {schedule.min_notice_hours}"
        )


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    try:
        config.business.tz
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(
            f"BUSINESS_TIMEZONE is not a known timezone: {config.business.timezone!r}"
        ) from None

    _validate_schedule(config.schedule)

    policy = config.policy
    if policy.full_refund_hours < policy.cancellation_cutoff_hours:
        raise ValueError(
            "FULL_REFUND_HOURS must be >= CANCELLATION_CUTOFF_HOURS, "
            f"got {policy.full_refund_hours} < {policy.cancellation_cutoff_hours}"
        )
    if not 0.0 <= policy.partial_refund_ratio <= 1.0:
        raise ValueError(
            f"PARTIAL_REFUND_RATIO must be between 0.0 and 1.0, got {policy.partial_refund_ratio}"
        )

    for hour_name, hour_value in [
        ("REMINDER_HOUR", config.housekeeping.reminder_hour),
        ("PENDING_CLEANUP_HOUR", config.housekeeping.pending_cleanup_hour),
    ]:
        if not 0 <= hour_value <= 23:
            raise ValueError(f"{hour_name} must be between 0 and 23, got {hour_value}")

    if config.housekeeping.no_show_interval_seconds < 1:
        raise ValueError(
            "NO_SHOW_INTERVAL_SECONDS must be >= 1, "
            f"got {config.housekeeping.no_show_interval_seconds}"
        )
    if config.payment.mode not in {"sandbox", "live"}:
        raise ValueError(f"PAYPAL_MODE must be 'sandbox' or 'live', got {config.payment.mode!r}")


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("Configuration loaded for '%s'", config.business.name)
    return config


# Singleton instance
settings = load_config()
