"""Integration tests for the HTTP API on the in-memory store."""

from datetime import datetime
from decimal import Decimal
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from parkease.infrastructure.services import ServiceFactory, set_service_factory
from parkease.presentation.api.config import Settings
from parkease.presentation.api.main import create_app

API = "/api/v1"
ADMIN = {"X-User-Id": str(uuid4()), "X-User-Role": "admin"}
USER = {"X-User-Id": str(uuid4())}
OTHER_USER = {"X-User-Id": str(uuid4()), "X-User-Role": "user"}


@pytest_asyncio.fixture
async def client(clock):
    factory = ServiceFactory(Settings(database_url="memory://"), clock=clock)
    set_service_factory(factory)
    await factory.initialize()

    async with AsyncClient(transport=ASGITransport(app=create_app()), base_url="http://test") as client:
        yield client

    await factory.shutdown()
    set_service_factory(None)


@pytest_asyncio.fixture
async def parking(client):
    """A location with two slots, created through the API."""
    response = await client.post(
        f"{API}/locations/",
        json={
            "location_id": "LOC-001",
            "name": "Central Plaza",
            "address": "1 Main Street",
            "latitude": 12.97,
            "longitude": 77.59,
            "pricing": {"car": "15"}
        },
        headers=ADMIN
    )
    assert response.status_code == 201
    location = response.json()

    slots = []
    for number in ("A1", "A2"):
        response = await client.post(
            f"{API}/slots/",
            json={"location_id": location["id"], "slot_number": number},
            headers=ADMIN
        )
        assert response.status_code == 201
        slots.append(response.json())
    return location, slots


def booking_payload(location, slot, **overrides):
    payload = {
        "slot_id": slot["id"],
        "location_id": location["id"],
        "vehicle_number": "ka01ab1234",
        "vehicle_type": "car",
        "start_time": "2025-06-01T10:00:00",
        "end_time": "2025-06-01T10:40:00",
    }
    payload.update(overrides)
    return payload


async def create_booking(client, location, slot, headers=USER, **overrides):
    response = await client.post(f"{API}/bookings/", json=booking_payload(location, slot, **overrides), headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["booking"]


class TestHealthEndpoints:
    """Test cases for health endpoints."""

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "service": "parkease"}

    @pytest.mark.asyncio
    async def test_root(self, client):
        response = await client.get("/")

        assert response.status_code == 200
        assert response.json()["message"] == "ParkEase API"


class TestIdentity:
    """Test cases for caller identity headers."""

    @pytest.mark.asyncio
    async def test_missing_user_header_is_unauthorized(self, client, parking):
        location, slots = parking

        response = await client.post(f"{API}/bookings/", json=booking_payload(location, slots[0]))

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_malformed_user_header_is_unauthorized(self, client):
        response = await client.get(f"{API}/bookings/my-bookings", headers={"X-User-Id": "not-a-uuid"})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_admin_endpoints_reject_users(self, client):
        response = await client.post(
            f"{API}/locations/",
            json={"location_id": "LOC-9", "name": "Mall", "address": "Road", "latitude": 0, "longitude": 0},
            headers=USER
        )

        assert response.status_code == 403


class TestLocationEndpoints:
    """Test cases for location and slot endpoints."""

    @pytest.mark.asyncio
    async def test_created_location_has_defaults_and_counters(self, client, parking):
        location, _ = parking

        response = await client.get(f"{API}/locations/{location['id']}")

        body = response.json()
        assert response.status_code == 200
        assert body["location_id"] == "LOC-001"
        assert Decimal(body["pricing"]["car"]) == Decimal("15")
        assert Decimal(body["pricing"]["bus"]) == Decimal("25")
        assert body["total_slots"] == 2
        assert body["available_slots"] == 2

    @pytest.mark.asyncio
    async def test_duplicate_location_code_is_conflict(self, client, parking):
        response = await client.post(
            f"{API}/locations/",
            json={"location_id": "LOC-001", "name": "Copy", "address": "Road", "latitude": 0, "longitude": 0},
            headers=ADMIN
        )

        assert response.status_code == 409
        assert response.json()["type"] == "conflict"

    @pytest.mark.asyncio
    async def test_unknown_location_is_not_found(self, client):
        response = await client.get(f"{API}/locations/{uuid4()}/availability")

        assert response.status_code == 404
        assert response.json()["type"] == "not_found"

    @pytest.mark.asyncio
    async def test_pricing_update_merges(self, client, parking):
        location, _ = parking

        response = await client.patch(
            f"{API}/locations/{location['id']}/pricing", json={"pricing": {"bike": "12.50"}}, headers=ADMIN
        )

        pricing = response.json()["pricing"]
        assert response.status_code == 200
        assert Decimal(pricing["bike"]) == Decimal("12.50")
        assert Decimal(pricing["car"]) == Decimal("15")

    @pytest.mark.asyncio
    async def test_maintenance_and_available_listing(self, client, parking):
        location, slots = parking

        response = await client.patch(
            f"{API}/slots/{slots[0]['id']}/maintenance", json={"maintenance": True}, headers=ADMIN
        )
        assert response.status_code == 200
        assert response.json()["status"] == "maintenance"

        response = await client.get(
            f"{API}/slots/location/{location['id']}/available", params={"vehicleType": "car"}
        )
        assert [slot["slot_number"] for slot in response.json()] == ["A2"]

        availability = (await client.get(f"{API}/locations/{location['id']}/availability")).json()
        assert availability["total_slots"] == 2
        assert availability["available_slots"] == 1
        assert availability["occupied_slots"] == 1

    @pytest.mark.asyncio
    async def test_delete_slot(self, client, parking):
        location, slots = parking

        response = await client.delete(f"{API}/slots/{slots[1]['id']}", headers=ADMIN)
        assert response.status_code == 200

        listed = (await client.get(f"{API}/slots/location/{location['id']}")).json()
        assert [slot["slot_number"] for slot in listed] == ["A1"]


class TestBookingEndpoints:
    """Test cases for the booking flow."""

    @pytest.mark.asyncio
    async def test_full_booking_flow(self, client, clock, parking):
        location, slots = parking
        booking = await create_booking(client, location, slots[0])

        assert booking["booking_id"].startswith("BK")
        assert booking["payment_id"].startswith("PAY")
        assert booking["vehicle_number"] == "KA01AB1234"
        assert booking["booking_status"] == "upcoming"
        assert booking["payment_status"] == "completed"
        assert Decimal(booking["total_amount"]) == Decimal("45")

        clock.set(datetime(2025, 6, 1, 10, 0))
        response = await client.post(f"{API}/bookings/{booking['id']}/start-timer", headers=USER)
        assert response.status_code == 200
        assert response.json()["booking"]["booking_status"] == "active"

        response = await client.post(f"{API}/bookings/{booking['id']}/extend", headers=USER)
        extended = response.json()["booking"]
        assert datetime.fromisoformat(extended["end_time"]) == datetime(2025, 6, 1, 10, 55)
        assert Decimal(extended["total_amount"]) == Decimal("55")

        clock.set(datetime(2025, 6, 1, 10, 45))
        response = await client.post(f"{API}/bookings/{booking['id']}/stop-timer", headers=USER)
        stopped = response.json()["booking"]
        assert stopped["booking_status"] == "completed"
        assert stopped["duration_minutes"] == 45

        availability = (await client.get(f"{API}/locations/{location['id']}/availability")).json()
        assert availability["available_slots"] == 2

        response = await client.delete(f"{API}/bookings/{booking['id']}", headers=USER)
        assert response.status_code == 200
        assert response.json() == {"message": "Booking deleted successfully"}

    @pytest.mark.asyncio
    async def test_booked_slot_is_conflict(self, client, parking):
        location, slots = parking
        await create_booking(client, location, slots[0])

        response = await client.post(
            f"{API}/bookings/", json=booking_payload(location, slots[0]), headers=OTHER_USER
        )

        assert response.status_code == 409
        assert response.json() == {
            "detail": "Slot is not available",
            "type": "conflict",
            "code": "SlotUnavailableError"
        }

    @pytest.mark.asyncio
    async def test_inverted_window_is_bad_request(self, client, parking):
        location, slots = parking

        response = await client.post(
            f"{API}/bookings/",
            json=booking_payload(location, slots[0], end_time="2025-06-01T09:00:00"),
            headers=USER
        )

        assert response.status_code == 400
        assert response.json()["type"] == "validation_error"

    @pytest.mark.asyncio
    async def test_timezone_aware_times_are_normalized(self, client, parking):
        location, slots = parking

        booking = await create_booking(
            client, location, slots[0],
            start_time="2025-06-01T15:30:00+05:30",
            end_time="2025-06-01T16:10:00+05:30"
        )

        assert datetime.fromisoformat(booking["start_time"]) == datetime(2025, 6, 1, 10, 0)
        assert datetime.fromisoformat(booking["end_time"]) == datetime(2025, 6, 1, 10, 40)

    @pytest.mark.asyncio
    async def test_cancel_after_start_is_invalid_transition(self, client, clock, parking):
        location, slots = parking
        booking = await create_booking(client, location, slots[0])
        clock.set(datetime(2025, 6, 1, 10, 5))
        await client.post(f"{API}/bookings/{booking['id']}/start-timer", headers=USER)

        response = await client.post(f"{API}/bookings/{booking['id']}/cancel", headers=USER)

        assert response.status_code == 409
        assert response.json()["type"] == "invalid_transition"

    @pytest.mark.asyncio
    async def test_cancel_with_reason(self, client, parking):
        location, slots = parking
        booking = await create_booking(client, location, slots[0])

        response = await client.post(
            f"{API}/bookings/{booking['id']}/cancel", json={"reason": "Trip postponed"}, headers=USER
        )

        cancelled = response.json()["booking"]
        assert response.status_code == 200
        assert cancelled["booking_status"] == "cancelled"
        assert cancelled["payment_status"] == "refunded"
        assert cancelled["cancellation_reason"] == "Trip postponed"

    @pytest.mark.asyncio
    async def test_start_before_window_is_invalid_transition(self, client, parking):
        location, slots = parking
        booking = await create_booking(client, location, slots[0])

        response = await client.post(f"{API}/bookings/{booking['id']}/start-timer", headers=USER)

        assert response.status_code == 409
        assert response.json()["code"] == "TooEarlyError"

    @pytest.mark.asyncio
    async def test_other_users_booking_is_forbidden(self, client, parking):
        location, slots = parking
        booking = await create_booking(client, location, slots[0])

        response = await client.get(f"{API}/bookings/{booking['id']}", headers=OTHER_USER)
        assert response.status_code == 403
        assert response.json()["type"] == "forbidden"

        response = await client.get(f"{API}/bookings/{booking['id']}", headers=ADMIN)
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_unknown_booking_is_not_found(self, client):
        response = await client.post(f"{API}/bookings/{uuid4()}/stop-timer", headers=USER)

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_upcoming_booking_is_rejected(self, client, parking):
        location, slots = parking
        booking = await create_booking(client, location, slots[0])

        response = await client.delete(f"{API}/bookings/{booking['id']}", headers=USER)

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_my_bookings_are_categorized(self, client, clock, parking):
        location, slots = parking
        later = await create_booking(
            client, location, slots[0], start_time="2025-06-01T12:00:00", end_time="2025-06-01T13:00:00"
        )
        cancelled = await create_booking(client, location, slots[1])
        await client.post(f"{API}/bookings/{cancelled['id']}/cancel", headers=USER)

        response = await client.get(f"{API}/bookings/my-bookings", headers=USER)

        body = response.json()
        assert response.status_code == 200
        assert [booking["id"] for booking in body["upcoming"]] == [later["id"]]
        assert [booking["id"] for booking in body["past"]] == [cancelled["id"]]
        assert body["current"] == []

        filtered = (await client.get(
            f"{API}/bookings/my-bookings", params={"status": "cancelled"}, headers=USER
        )).json()
        assert [booking["id"] for booking in filtered["past"]] == [cancelled["id"]]
        assert filtered["upcoming"] == []
