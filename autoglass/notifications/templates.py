"""Message templates for customer and staff notifications."""

import html as html_lib
from datetime import date
from enum import Enum
from typing import Any

from autoglass.config import BusinessConfig


class Template(str, Enum):
    CONFIRMATION = "confirmation"
    REMINDER = "reminder"
    CANCELLATION = "cancellation"
    CONFIRMATION_ACK = "confirmation-ack"
    RESCHEDULE_REQUEST = "reschedule-request"
    HELP = "help"
    UNKNOWN_COMMAND = "unknown-command"
    NO_BOOKING = "no-booking"
    STAFF_ALERT = "staff-alert"
    CONTACT_NOTIFICATION = "contact-notification"
    CONTACT_AUTO_REPLY = "contact-auto-reply"


def _long_date(value: Any) -> str:
    if isinstance(value, str):
        value = date.fromisoformat(value)
    return f"{value:%A}, {value:%B} {value.day}"


def render_sms(template: Template, data: dict[str, Any], business: BusinessConfig) -> str:
    """Render the SMS body for ``template``."""
    name = business.name
    phone = business.phone

    if template == Template.CONFIRMATION:
        return (
            f"{name}: Your appointment is booked!\n\n"
            f"Date: {_long_date(data['date'])}\n"
            f"Time: {data['time_display']}\n"
            f"Service: {data['service_name']}\n"
            f"Ref: {data['booking_number']}\n\n"
            "Reply:\n"
            "C - Cancel appointment\n"
            "R - Request reschedule\n"
            "HELP - Get assistance"
        )
    if template == Template.REMINDER:
        return (
            f"{name} Reminder: Your appointment is TOMORROW!\n\n"
            f"Time: {data['time_display']}\n"
            f"Ref: {data['booking_number']}\n\n"
            "Reply:\n"
            "Y - Confirm attendance\n"
            "C - Cancel appointment\n"
            "R - Request reschedule"
        )
    if template == Template.CANCELLATION:
        return (
            f"{name}: Your appointment has been cancelled.\n\n"
            f"{_long_date(data['date'])} at {data['time_display']}\n"
            f"Ref: {data['booking_number']}\n\n"
            f"To rebook, visit our website or call {phone}"
        )
    if template == Template.CONFIRMATION_ACK:
        return (
            f"{name}: Thanks for confirming!\n\n"
            "We'll see you at your appointment.\n"
            f"Ref: {data['booking_number']}"
        )
    if template == Template.RESCHEDULE_REQUEST:
        return (
            f"{name}: We received your reschedule request for booking {data['booking_number']}.\n\n"
            "We'll call you within 1 hour to find a new time.\n\n"
            f"Or call us now: {phone}"
        )
    if template == Template.HELP:
        return (
            f"{name} Help:\n\n"
            f"Call: {phone}\n"
            f"Web: {business.website}\n\n"
            "Text Commands:\n"
            "Y - Confirm appointment\n"
            "C - Cancel appointment\n"
            "R - Request reschedule\n"
            "STOP - Opt out of texts"
        )
    if template == Template.UNKNOWN_COMMAND:
        return (
            f"{name}: Sorry, we didn't understand that.\n\n"
            "Reply:\n"
            "Y - Confirm\n"
            "C - Cancel\n"
            "R - Reschedule\n"
            "HELP - Get assistance\n\n"
            f"Or call {phone}"
        )
    if template == Template.NO_BOOKING:
        return f"We couldn't find an active booking for your number. Please call us at {phone}"
    if template == Template.STAFF_ALERT:
        return data["message"]
    if template == Template.CONTACT_NOTIFICATION:
        return (
            "New Contact Form!\n\n"
            f"Name: {data['name']}\n"
            f"Phone: {data['phone']}\n"
            f"Email: {data['email']}\n"
            f"Service: {data.get('service') or 'Not specified'}\n\n"
            f"Message: {(data.get('message') or '')[:100] or 'None'}"
        )
    if template == Template.CONTACT_AUTO_REPLY:
        return (
            f"Thanks for contacting {name}!\n\n"
            "We received your message and will get back to you within 24 hours.\n\n"
            f"Need immediate help? Call {phone}"
        )
    raise ValueError(f"No SMS template for {template.value}")


def render_email(template: Template, data: dict[str, Any], business: BusinessConfig) -> tuple[str, str]:
    """Render ``(subject, html)`` for ``template``."""
    if template == Template.CONTACT_NOTIFICATION:
        return _contact_notification_email(data)
    name = business.name
    if template == Template.CONFIRMATION:
        subject = f"Booking Confirmed - {data['booking_number']}"
        heading = "Booking Confirmed!"
        intro = f"Thank you for choosing {name}. Your appointment has been booked."
    elif template == Template.REMINDER:
        subject = f"Appointment Reminder - Tomorrow at {data['time_display']}"
        heading = "Appointment Reminder"
        intro = "This is a friendly reminder that your appointment is tomorrow."
    elif template == Template.CANCELLATION:
        subject = f"Booking Cancelled - {data['booking_number']}"
        heading = "Booking Cancelled"
        intro = "Your appointment has been cancelled. We hope to see you another time."
    else:
        raise ValueError(f"No email template for {template.value}")

    rows = [
        ("Booking Number", data["booking_number"]),
        ("Service", data.get("service_name", "")),
        ("Date", _long_date(data["date"])),
        ("Time", data["time_display"]),
    ]
    if data.get("vehicle"):
        rows.append(("Vehicle", data["vehicle"]))
    if data.get("total_amount") is not None:
        rows.append(("Total", f"${data['total_amount']:.2f}"))
    details = "\n".join(
        f'<div class="detail-row"><strong>{label}:</strong> {value}</div>' for label, value in rows
    )
    html = f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"></head>
<body style="font-family: Arial, sans-serif; color: #333;">
  <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
    <h1>{heading}</h1>
    <p>{intro}</p>
    {details}
    <p>Need to reschedule or cancel? Contact us at least 24 hours before your appointment
    at {business.phone}.</p>
    <p style="color: #6b7280; font-size: 14px;">{name}</p>
  </div>
</body>
</html>"""
    return subject, html


def _contact_notification_email(data: dict[str, Any]) -> tuple[str, str]:
    """Staff inbox copy of a contact-form submission. Submitted text is escaped."""
    rows = [
        ("Name", data["name"]),
        ("Email", data["email"]),
        ("Phone", data["phone"]),
        ("Service", data.get("service") or "Not specified"),
        ("Message", data.get("message") or "None"),
    ]
    details = "\n".join(
        f"<p><strong>{label}:</strong> {html_lib.escape(str(value))}</p>" for label, value in rows
    )
    html = f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"></head>
<body style="font-family: Arial, sans-serif; color: #333;">
  <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
    <h2>New Contact Form Submission</h2>
    {details}
  </div>
</body>
</html>"""
    return f"New Contact Form: {data['name']}", html
