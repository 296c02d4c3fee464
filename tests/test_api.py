"""End-to-end tests of the HTTP API against in-memory stores."""

import re
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from autoglass.api import build_services, create_app
from autoglass.clock import FixedClock
from autoglass.config import AppConfig, HousekeepingConfig
from autoglass.notifications import Notifier

from tests.conftest import (
    NOW,
    TZ,
    FakeEmail,
    FakePaymentGateway,
    FakeSms,
    make_business,
    make_policy,
    make_schedule,
)

STAFF = {"Authorization": "Bearer staff-secret", "X-Staff-Id": "tech-1"}

# Monday after the fixed clock.
DAY = "2025-06-09"


def booking_payload(time_slot: str = "09:00", **overrides) -> dict:
    payload = {
        "serviceId": "repair",
        "vehicle": {"make": "Honda", "model": "Civic", "year": 2018},
        "appointmentDate": DAY,
        "timeSlot": time_slot,
        "firstName": "Dana",
        "lastName": "Reyes",
        "email": "dana@example.com",
        "phone": "(555) 222-3333",
    }
    payload.update(overrides)
    return payload


def contact_payload(**overrides) -> dict:
    payload = {
        "name": "Sam Ortiz",
        "email": "Sam@Example.com",
        "phone": "(555) 444-1212",
        "service": "repair",
        "message": "Rock chip on the passenger side.",
    }
    payload.update(overrides)
    return payload


def guest_proof(booking: dict) -> dict:
    return {"bookingNumber": booking["bookingNumber"], "email": "dana@example.com"}


def make_services(staff_api_token: str = "staff-secret", notify_email: str = ""):
    config = AppConfig(
        business=make_business(notify_phone="3855550100", notify_email=notify_email),
        schedule=make_schedule(max_bookings_per_slot=1),
        policy=make_policy(),
        housekeeping=HousekeepingConfig(enabled=False),
        staff_api_token=staff_api_token,
    )
    notifier = Notifier(config.business, sms=FakeSms(), email=FakeEmail())
    return build_services(
        config,
        clock=FixedClock(NOW, TZ),
        notifier=notifier,
        payments=FakePaymentGateway(),
    )


@pytest.fixture
def services():
    return make_services(notify_email="office@example.com")


@pytest.fixture
def booking_services_without_token():
    return make_services(staff_api_token="")


@pytest.fixture
def client(services):
    with TestClient(create_app(services=services)) as test_client:
        yield test_client


@pytest.fixture
def booking(client):
    response = client.post("/api/bookings", json=booking_payload())
    assert response.status_code == 201
    return response.json()["booking"]


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "OK"
        assert client.get("/api/health").status_code == 200

    def test_request_id_is_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-42"})
        assert response.headers["X-Request-ID"] == "req-42"

    def test_request_id_is_generated(self, client):
        assert client.get("/health").headers["X-Request-ID"]


class TestServiceCatalog:
    def test_list_and_filter(self, client):
        all_services = client.get("/api/services").json()["services"]
        assert {"windshield", "repair", "auto-repair"} <= {s["id"] for s in all_services}
        glass = client.get("/api/services", params={"category": "replacement"}).json()["services"]
        assert glass and all(s["category"] == "replacement" for s in glass)

    def test_popular(self, client):
        popular = client.get("/api/services/popular").json()["services"]
        assert popular and all(s["popular"] for s in popular)

    def test_unknown_service(self, client):
        response = client.get("/api/services/teleporter")
        assert response.status_code == 404
        assert response.json() == {"error": "Service not found", "code": "service_not_found"}

    def test_estimate_for_newer_vehicle(self, client):
        body = client.get("/api/services/repair/estimate", params={"vehicleYear": 2022}).json()
        assert body["estimate"]["basePrice"] == 49.99
        assert body["estimate"]["estimatedPrice"] == pytest.approx(57.49, abs=0.01)
        assert body["estimate"]["priceModifiers"][0]["modifier"] == "+15%"

    def test_estimate_for_older_vehicle(self, client):
        body = client.get("/api/services/repair/estimate", params={"vehicleYear": 2005}).json()
        assert body["estimate"]["estimatedPrice"] == 44.99


class TestCalendar:
    def test_slots_for_open_day(self, client):
        body = client.get(f"/api/calendar/slots/{DAY}").json()
        assert body["date"] == DAY
        assert body["count"] == 20
        assert body["slots"][0] == {"time": "08:00", "display": "8:00 AM"}

    def test_closed_day_has_no_slots(self, client):
        assert client.get("/api/calendar/slots/2025-06-08").json()["count"] == 0

    def test_invalid_date(self, client):
        response = client.get("/api/calendar/slots/2025-13-45")
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_date"

    def test_overview(self, client):
        days = client.get(
            "/api/calendar/overview", params={"start": "2025-06-07", "end": "2025-06-09"}
        ).json()["calendar"]
        assert [d["date"] for d in days] == ["2025-06-07", "2025-06-08", "2025-06-09"]
        assert days[0]["businessHours"] == "09:00 - 16:00"
        assert days[1] == {
            "date": "2025-06-08", "dayOfWeek": "sunday", "isOpen": False, "businessHours": "Closed",
        }
        assert days[2]["availableSlots"] == days[2]["totalSlots"] == 20

    def test_overview_rejects_reversed_range(self, client):
        response = client.get(
            "/api/calendar/overview", params={"start": "2025-06-09", "end": "2025-06-07"}
        )
        assert response.status_code == 400

    def test_check_slot(self, client, booking):
        taken = client.get("/api/calendar/check", params={"date": DAY, "timeSlot": "09:00"}).json()
        assert taken == {"date": DAY, "timeSlot": "09:00", "available": False}
        free = client.get("/api/calendar/check", params={"date": DAY, "timeSlot": "09:30"}).json()
        assert free["available"] is True


class TestStaffBlocks:
    def test_block_requires_staff(self, client):
        response = client.post("/api/calendar/block", json={"date": DAY, "timeSlot": "10:00"})
        assert response.status_code == 401

    def test_block_and_unblock(self, client):
        response = client.post(
            "/api/calendar/block",
            json={"date": DAY, "timeSlot": "10:00", "reason": "maintenance"},
            headers=STAFF,
        )
        assert response.status_code == 201
        blocked = response.json()["blockedSlot"]
        assert blocked["createdBy"] == "tech-1"

        times = [s["time"] for s in client.get(f"/api/calendar/slots/{DAY}").json()["slots"]]
        assert "10:00" not in times

        listed = client.get(
            "/api/calendar/blocks", params={"start": DAY, "end": DAY}, headers=STAFF
        ).json()["blockedSlots"]
        assert [b["id"] for b in listed] == [blocked["id"]]

        for _ in range(2):
            response = client.delete(f"/api/calendar/block/{blocked['id']}", headers=STAFF)
            assert response.status_code == 200
            assert response.json() == {"message": "Slot unblocked"}
        times = [s["time"] for s in client.get(f"/api/calendar/slots/{DAY}").json()["slots"]]
        assert "10:00" in times

    def test_all_day_block_empties_day(self, client):
        client.post(
            "/api/calendar/block",
            json={"date": DAY, "isAllDay": True, "reason": "holiday"},
            headers=STAFF,
        )
        assert client.get(f"/api/calendar/slots/{DAY}").json()["count"] == 0

    def test_slot_block_needs_time(self, client):
        response = client.post("/api/calendar/block", json={"date": DAY}, headers=STAFF)
        assert response.status_code == 400

    def test_bookings_for_date(self, client, booking):
        response = client.get(f"/api/calendar/bookings/{DAY}", headers=STAFF)
        assert [b["bookingNumber"] for b in response.json()["bookings"]] == [booking["bookingNumber"]]


class TestCreateBooking:
    def test_guest_booking(self, booking):
        assert re.match(r"^[A-Z0-9]+-[A-Z0-9]{4}$", booking["bookingNumber"])
        assert booking["status"] == "pending"
        assert booking["service"]["price"] == 49.99
        assert booking["payment"]["totalAmount"] == 49.99
        assert booking["payment"]["status"] == "pending"
        assert booking["appointment"] == {"date": DAY, "timeSlot": "09:00", "isMobileService": False}

    def test_full_slot_is_rejected(self, client, booking):
        response = client.post("/api/bookings", json=booking_payload())
        assert response.status_code == 409
        assert response.json() == {"error": "Time slot not available", "code": "slot_unavailable"}

    def test_unknown_service(self, client):
        response = client.post("/api/bookings", json=booking_payload(serviceId="teleporter"))
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_service"

    def test_missing_contact(self, client):
        response = client.post("/api/bookings", json=booking_payload(email=None))
        assert response.status_code == 400
        assert response.json() == {"error": "Contact info required", "code": "missing_contact_info"}

    def test_slot_outside_hours(self, client):
        response = client.post("/api/bookings", json=booking_payload(time_slot="19:00"))
        assert response.status_code == 409

    def test_malformed_body(self, client):
        response = client.post("/api/bookings", json={"serviceId": "repair"})
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_request"

    def test_signed_in_customer(self, client, services):
        response = client.post(
            "/api/bookings",
            json=booking_payload(firstName=None, lastName=None, email=None),
            headers={"X-Customer-Id": "user-9"},
        )
        assert response.status_code == 201
        admin_view = client.get(
            f"/api/admin/bookings/{response.json()['booking']['id']}", headers=STAFF
        ).json()["booking"]
        assert admin_view["customer"]["id"] == "user-9"
        assert admin_view["guestInfo"] is None

    def test_mobile_service_with_insurance(self, client):
        response = client.post("/api/bookings", json=booking_payload(
            isMobileService=True,
            location={"address": {"street": "1 Main St", "city": "Provo"}},
            useInsurance=True,
            insuranceInfo={"company": "Acme", "policyNumber": "P-1"},
        ))
        assert response.status_code == 201
        admin_view = client.get(
            f"/api/admin/bookings/{response.json()['booking']['id']}", headers=STAFF
        ).json()["booking"]
        assert admin_view["location"]["type"] == "customer-location"
        assert admin_view["insurance"]["company"] == "Acme"


class TestLookupAndCancel:
    def test_lookup(self, client, booking):
        response = client.get("/api/bookings/lookup", params={
            "bookingNumber": booking["bookingNumber"].lower(),
            "email": "DANA@example.com",
        })
        assert response.status_code == 200
        assert response.json()["booking"]["id"] == booking["id"]

    def test_lookup_wrong_email_is_not_found(self, client, booking):
        response = client.get("/api/bookings/lookup", params={
            "bookingNumber": booking["bookingNumber"], "email": "someone@example.com",
        })
        assert response.status_code == 404

    def test_lookup_requires_both_fields(self, client):
        response = client.get("/api/bookings/lookup", params={"bookingNumber": "ABC-1234"})
        assert response.status_code == 400

    def test_cancel_releases_slot(self, client, booking):
        response = client.post(
            f"/api/bookings/{booking['id']}/cancel",
            json={"reason": "Sold the car", **guest_proof(booking)},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["refundAmount"] == 0.0
        assert body["booking"]["status"] == "cancelled"
        assert body["booking"]["cancellation"]["reason"] == "Sold the car"
        assert body["booking"]["cancellation"]["cancelledBy"] == "customer"

        check = client.get("/api/calendar/check", params={"date": DAY, "timeSlot": "09:00"}).json()
        assert check["available"] is True

        again = client.post(f"/api/bookings/{booking['id']}/cancel", json=guest_proof(booking))
        assert again.status_code == 409
        assert again.json()["code"] == "cancellation_not_allowed"

    def test_cancel_unknown_booking(self, client):
        response = client.post("/api/bookings/missing/cancel", headers=STAFF)
        assert response.status_code == 404


class TestCancelAuthorization:
    def test_without_proof_is_forbidden(self, client, booking):
        response = client.post(f"/api/bookings/{booking['id']}/cancel", json={"reason": "x"})
        assert response.status_code == 403
        assert response.json()["code"] == "not_authorized"
        admin_view = client.get(f"/api/admin/bookings/{booking['id']}", headers=STAFF).json()["booking"]
        assert admin_view["status"] == "pending"

    def test_guest_proof_matches_like_lookup(self, client, booking):
        response = client.post(f"/api/bookings/{booking['id']}/cancel", json={
            "bookingNumber": f" {booking['bookingNumber'].lower()} ",
            "email": "DANA@Example.com",
        })
        assert response.status_code == 200

    def test_guest_wrong_email_is_forbidden(self, client, booking):
        response = client.post(f"/api/bookings/{booking['id']}/cancel", json={
            "bookingNumber": booking["bookingNumber"], "email": "someone@example.com",
        })
        assert response.status_code == 403

    def test_booking_number_of_another_booking_is_forbidden(self, client, booking):
        other = client.post("/api/bookings", json=booking_payload(time_slot="10:00")).json()["booking"]
        response = client.post(f"/api/bookings/{booking['id']}/cancel", json={
            "bookingNumber": other["bookingNumber"], "email": "dana@example.com",
        })
        assert response.status_code == 403

    def test_owning_customer_may_cancel(self, client):
        created = client.post(
            "/api/bookings", json=booking_payload(), headers={"X-Customer-Id": "cust-1"}
        ).json()["booking"]
        response = client.post(
            f"/api/bookings/{created['id']}/cancel", headers={"X-Customer-Id": "cust-1"}
        )
        assert response.status_code == 200
        assert response.json()["booking"]["cancellation"]["cancelledBy"] == "customer"

    def test_other_customer_is_forbidden(self, client):
        created = client.post(
            "/api/bookings", json=booking_payload(), headers={"X-Customer-Id": "cust-1"}
        ).json()["booking"]
        response = client.post(
            f"/api/bookings/{created['id']}/cancel", headers={"X-Customer-Id": "cust-2"}
        )
        assert response.status_code == 403

    def test_customer_header_does_not_unlock_guest_booking(self, client, booking):
        response = client.post(
            f"/api/bookings/{booking['id']}/cancel", headers={"X-Customer-Id": "cust-1"}
        )
        assert response.status_code == 403

    def test_staff_token_may_cancel(self, client, booking):
        response = client.post(f"/api/bookings/{booking['id']}/cancel", headers=STAFF)
        assert response.status_code == 200
        assert response.json()["booking"]["cancellation"]["cancelledBy"] == "admin"

    def test_wrong_staff_token_is_forbidden(self, client, booking):
        response = client.post(
            f"/api/bookings/{booking['id']}/cancel", headers={"Authorization": "Bearer nope"}
        )
        assert response.status_code == 403

    def test_no_token_configured_grants_no_staff_access(self, booking_services_without_token):
        with TestClient(create_app(services=booking_services_without_token)) as client:
            created = client.post("/api/bookings", json=booking_payload()).json()["booking"]
            response = client.post(
                f"/api/bookings/{created['id']}/cancel", headers={"Authorization": "Bearer "}
            )
            assert response.status_code == 403


class TestCustomerBookings:
    def test_lists_only_own_bookings(self, client, booking):
        mine = client.post(
            "/api/bookings", json=booking_payload(time_slot="10:00"), headers={"X-Customer-Id": "cust-1"}
        ).json()["booking"]
        client.post(
            "/api/bookings", json=booking_payload(time_slot="11:00"), headers={"X-Customer-Id": "cust-2"}
        )

        response = client.get("/api/bookings", headers={"X-Customer-Id": "cust-1"})
        assert response.status_code == 200
        body = response.json()
        assert [b["id"] for b in body["bookings"]] == [mine["id"]]
        assert body["pagination"] == {"page": 1, "limit": 10, "total": 1, "pages": 1}

    def test_list_filters_by_status(self, client):
        client.post("/api/bookings", json=booking_payload(), headers={"X-Customer-Id": "cust-1"})
        response = client.get(
            "/api/bookings", params={"status": "cancelled"}, headers={"X-Customer-Id": "cust-1"}
        )
        assert response.json()["bookings"] == []

    def test_list_requires_customer(self, client):
        assert client.get("/api/bookings").status_code == 403

    def test_owner_reads_booking(self, client):
        created = client.post(
            "/api/bookings", json=booking_payload(), headers={"X-Customer-Id": "cust-1"}
        ).json()["booking"]
        response = client.get(f"/api/bookings/{created['id']}", headers={"X-Customer-Id": "cust-1"})
        assert response.status_code == 200
        assert response.json()["booking"]["customer"]["id"] == "cust-1"

    def test_stranger_cannot_read_booking(self, client, booking):
        assert client.get(f"/api/bookings/{booking['id']}").status_code == 403
        response = client.get(f"/api/bookings/{booking['id']}", headers={"X-Customer-Id": "cust-9"})
        assert response.status_code == 403

    def test_staff_reads_any_booking(self, client, booking):
        response = client.get(f"/api/bookings/{booking['id']}", headers=STAFF)
        assert response.status_code == 200

    def test_unknown_booking(self, client):
        assert client.get("/api/bookings/missing", headers=STAFF).status_code == 404


class TestAdmin:
    def test_requires_token(self, client):
        assert client.get("/api/admin/stats").status_code == 401
        wrong = {"Authorization": "Bearer nope"}
        assert client.get("/api/admin/stats", headers=wrong).status_code == 401

    def test_stats(self, client, booking):
        stats = client.get("/api/admin/stats", headers=STAFF).json()
        assert stats == {
            "todayBookings": 0,
            "weekBookings": 1,
            "monthRevenue": 0,
            "confirmedToday": 0,
            "pendingPayments": 1,
            "pendingContacts": 0,
        }

    def test_list_with_filters(self, client, booking):
        body = client.get(
            "/api/admin/bookings", params={"status": "pending", "date": DAY}, headers=STAFF
        ).json()
        assert [b["id"] for b in body["bookings"]] == [booking["id"]]
        assert body["pagination"] == {"page": 1, "limit": 20, "total": 1, "pages": 1}

        empty = client.get("/api/admin/bookings", params={"status": "completed"}, headers=STAFF).json()
        assert empty["pagination"]["total"] == 0

    def test_list_rejects_unknown_status(self, client):
        response = client.get("/api/admin/bookings", params={"status": "lost"}, headers=STAFF)
        assert response.status_code == 400

    def test_status_lifecycle(self, client, booking):
        url = f"/api/admin/bookings/{booking['id']}/status"
        assert client.patch(url, json={"status": "confirmed"}, headers=STAFF).json()["booking"]["status"] == "confirmed"

        rejected = client.patch(url, json={"status": "completed"}, headers=STAFF)
        assert rejected.status_code == 409
        assert rejected.json()["code"] == "invalid_transition"

        client.patch(url, json={"status": "in-progress"}, headers=STAFF)
        done = client.patch(
            url, json={"status": "completed", "technicianNotes": "Chip filled"}, headers=STAFF
        ).json()["booking"]
        assert done["status"] == "completed"
        assert done["completion"]["technicianNotes"] == "Chip filled"

    def test_unknown_status_value(self, client, booking):
        response = client.patch(
            f"/api/admin/bookings/{booking['id']}/status", json={"status": "bogus"}, headers=STAFF
        )
        assert response.status_code == 400

    def test_unknown_booking(self, client):
        assert client.get("/api/admin/bookings/missing", headers=STAFF).status_code == 404

    def test_run_sweep(self, client):
        response = client.post("/api/admin/housekeeping/no-shows", headers=STAFF)
        assert response.json() == {"sweep": "no-shows", "affected": 0}
        assert client.post("/api/admin/housekeeping/vacuum", headers=STAFF).status_code == 400


class TestContactForm:
    def test_submit(self, client):
        response = client.post("/api/contact", json=contact_payload())
        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Thank you! We will be in touch soon."
        assert body["contactId"]

        listed = client.get("/api/contact", headers=STAFF).json()
        contact = listed["contacts"][0]
        assert contact["id"] == body["contactId"]
        assert contact["email"] == "sam@example.com"
        assert contact["status"] == "new"
        assert contact["source"] == "website"
        assert "ipAddress" not in contact

    def test_submit_validation(self, client):
        response = client.post("/api/contact", json=contact_payload(email="not-an-email"))
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_request"
        assert client.post("/api/contact", json=contact_payload(service="")).status_code == 400
        assert client.post("/api/contact", json=contact_payload(message="x" * 2001)).status_code == 400

    def test_staff_routes_require_token(self, client):
        contact_id = client.post("/api/contact", json=contact_payload()).json()["contactId"]
        assert client.get("/api/contact").status_code == 401
        assert client.patch(f"/api/contact/{contact_id}", json={"status": "read"}).status_code == 401
        assert client.post(f"/api/contact/{contact_id}/respond", json={"message": "hi"}).status_code == 401
        assert client.get("/api/admin/contacts").status_code == 401

    def test_update_and_respond(self, client):
        contact_id = client.post("/api/contact", json=contact_payload()).json()["contactId"]

        updated = client.patch(
            f"/api/contact/{contact_id}", json={"status": "read", "assignedTo": "tech-2"}, headers=STAFF
        )
        assert updated.status_code == 200
        assert updated.json()["contact"]["status"] == "read"
        assert updated.json()["contact"]["assignedTo"] == "tech-2"

        responded = client.post(
            f"/api/contact/{contact_id}/respond", json={"message": "Called back"}, headers=STAFF
        )
        assert responded.status_code == 200
        contact = responded.json()["contact"]
        assert contact["status"] == "responded"
        assert contact["responses"][0]["message"] == "Called back"
        assert contact["responses"][0]["respondedBy"] == "tech-1"

    def test_unknown_contact(self, client):
        response = client.patch("/api/contact/missing", json={"status": "read"}, headers=STAFF)
        assert response.status_code == 404
        assert response.json()["error"] == "Contact not found"
        assert client.post(
            "/api/contact/missing/respond", json={"message": "hi"}, headers=STAFF
        ).status_code == 404

    def test_admin_contacts_and_pending_count(self, client):
        first = client.post("/api/contact", json=contact_payload()).json()["contactId"]
        client.post("/api/contact", json=contact_payload(name="Lee Park"))
        client.patch(f"/api/contact/{first}", json={"status": "closed"}, headers=STAFF)

        everything = client.get("/api/admin/contacts", params={"status": "all"}, headers=STAFF).json()
        assert everything["pagination"] == {"page": 1, "limit": 50, "total": 2, "pages": 1}

        new_only = client.get("/api/admin/contacts", params={"status": "new"}, headers=STAFF).json()
        assert [c["name"] for c in new_only["contacts"]] == ["Lee Park"]

        stats = client.get("/api/admin/stats", headers=STAFF).json()
        assert stats["pendingContacts"] == 1


class TestPayments:
    def test_checkout_flow(self, client, booking):
        number = booking["bookingNumber"]
        order = client.post("/api/payments/create-order", json={"bookingNumber": number}).json()
        assert order == {"orderId": "ORDER-1", "approvalUrl": "https://paypal.test/approve/ORDER-1"}

        captured = client.post(
            "/api/payments/capture-order", json={"bookingNumber": number, "orderId": "ORDER-1"}
        )
        assert captured.status_code == 200
        assert captured.json() == {
            "message": "Payment successful",
            "booking": {"bookingNumber": number, "status": "confirmed", "paymentStatus": "paid"},
        }

        status = client.get(f"/api/payments/status/{number}").json()
        assert status == {
            "bookingNumber": number, "paymentStatus": "paid", "totalAmount": 49.99, "paidAmount": 49.99,
        }

        again = client.post("/api/payments/create-order", json={"bookingNumber": number})
        assert again.status_code == 409
        assert again.json()["code"] == "already_paid"

    def test_capture_requires_order_id(self, client, booking):
        response = client.post(
            "/api/payments/capture-order", json={"bookingNumber": booking["bookingNumber"]}
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Order ID required"

    def test_unknown_booking_number(self, client):
        response = client.post("/api/payments/create-order", json={"bookingNumber": "NOPE-0000"})
        assert response.status_code == 404


class TestSmsWebhook:
    def test_returns_empty_twiml(self, client, booking):
        response = client.post("/api/sms/webhook", data={"From": "+15552223333", "Body": "Y"})
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/xml")
        assert response.text == "<Response></Response>"

        admin_view = client.get(f"/api/admin/bookings/{booking['id']}", headers=STAFF).json()["booking"]
        assert admin_view["status"] == "confirmed"

    def test_missing_fields_are_acknowledged(self, client, booking):
        for data in ({"From": "+15552223333"}, {"Body": "C"}):
            response = client.post("/api/sms/webhook", data=data)
            assert response.status_code == 200
            assert response.text == "<Response></Response>"

        admin_view = client.get(f"/api/admin/bookings/{booking['id']}", headers=STAFF).json()["booking"]
        assert admin_view["status"] == "pending"


class TestMarchScenario:
    """Single-capacity slot booked, refused, cancelled and released."""

    @pytest.fixture
    def client(self):
        config = AppConfig(
            business=make_business(),
            schedule=make_schedule(max_bookings_per_slot=1),
            policy=make_policy(),
            housekeeping=HousekeepingConfig(enabled=False),
            staff_api_token="staff-secret",
        )
        services = build_services(
            config,
            clock=FixedClock(datetime(2025, 3, 5, 12, 0), TZ),
            notifier=Notifier(config.business, sms=FakeSms(), email=FakeEmail()),
            payments=FakePaymentGateway(),
        )
        with TestClient(create_app(services=services)) as test_client:
            yield test_client

    def test_book_refuse_cancel_release(self, client):
        payload = booking_payload(appointmentDate="2025-03-10", time_slot="09:00")

        created = client.post("/api/bookings", json=payload)
        assert created.status_code == 201
        booking = created.json()["booking"]
        assert booking["status"] == "pending"
        assert booking["payment"]["totalAmount"] == 49.99

        assert client.post("/api/bookings", json=payload).status_code == 409

        cancelled = client.post(f"/api/bookings/{booking['id']}/cancel", json=guest_proof(booking))
        assert cancelled.status_code == 200
        assert cancelled.json()["refundAmount"] == 0.0

        check = client.get(
            "/api/calendar/check", params={"date": "2025-03-10", "timeSlot": "09:00"}
        ).json()
        assert check["available"] is True
        assert client.post("/api/bookings", json=payload).status_code == 201
