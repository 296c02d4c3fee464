"""Shared utilities used across the booking backend."""

import re

PHONE_MATCH_DIGITS = 10


def normalize_phone(value: str) -> str:
    """Normalize a phone number by stripping everything except digits and a leading +.

    Examples:
        >>> normalize_phone("(555) 123-4567")
        '5551234567'
        >>> normalize_phone("+1 555 123 4567")
        '+15551234567'
    """
    value = value.strip()
    if value.startswith("+"):
        return "+" + re.sub(r"[^\d]", "", value[1:])
    return re.sub(r"[^\d]", "", value)


def phone_suffix(value: str, digits: int = PHONE_MATCH_DIGITS) -> str:
    """Return the last ``digits`` digits of a phone number.

    Used to match inbound SMS senders against stored contact numbers
    regardless of country-code prefix.

        >>> phone_suffix("+15551234567")
        '5551234567'
    """
    return re.sub(r"[^\d]", "", value)[-digits:]


def to_e164(value: str) -> str:
    """Format a North American phone number in E.164.

        >>> to_e164("555-123-4567")
        '+15551234567'
        >>> to_e164("1 555 123 4567")
        '+15551234567'
    """
    digits = re.sub(r"[^\d]", "", value)
    if len(digits) == 10:
        return f"+1{digits}"
    return f"+{digits}"
