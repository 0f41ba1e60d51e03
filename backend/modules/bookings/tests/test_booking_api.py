# backend/modules/bookings/tests/test_booking_api.py

"""
API tests for availability, bookings and slot holds.
"""

from datetime import time

from .factories import BookingFactory, TableFactory

AVAILABILITY = "/api/v1/availability"
BOOKINGS = "/api/v1/bookings"
HOLDS = "/api/v1/holds"
BLOCKS = "/api/v1/blocks"


def booking_payload(venue_id, **overrides):
    payload = {
        "venue_id": venue_id,
        "service_id": "dinner",
        "guest_name": "Ada Lovelace",
        "email": "ada@example.com",
        "party_size": 2,
        "booking_date": "2025-06-01",
        "booking_time": "19:00:00",
        "duration_minutes": 120,
    }
    payload.update(overrides)
    return payload


class TestAvailabilityAPI:

    def test_slot_available(self, client, four_top):
        response = client.get(
            f"{AVAILABILITY}/venues/{four_top.venue_id}/slot",
            params={"booking_date": "2025-06-01", "booking_time": "19:00", "party_size": 2},
        )

        assert response.status_code == 200
        assert response.json()["available"] is True

    def test_slot_fully_booked_suggests_times(self, client, four_top, dinner_window):
        BookingFactory(venue_id=four_top.venue_id, table_id=four_top.id, booking_time=time(18, 30))

        response = client.get(
            f"{AVAILABILITY}/venues/{four_top.venue_id}/slot",
            params={"booking_date": "2025-06-01", "booking_time": "19:00", "party_size": 2},
        )

        body = response.json()
        assert body["available"] is False
        assert body["reason"] == "fully booked"
        assert body["suggested_times"] == ["20:30", "20:45", "21:00"]

    def test_invalid_party_size_rejected(self, client, four_top):
        response = client.get(
            f"{AVAILABILITY}/venues/{four_top.venue_id}/slot",
            params={"booking_date": "2025-06-01", "booking_time": "19:00", "party_size": 0},
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_INPUT"

    def test_date_availability(self, client, four_top, dinner_window):
        response = client.get(
            f"{AVAILABILITY}/venues/{four_top.venue_id}/dates/2025-06-01",
            params={"party_size": 4},
        )

        assert response.status_code == 200
        assert response.json()["available"] is True

    def test_available_dates(self, client, four_top, dinner_window):
        response = client.get(
            f"{AVAILABILITY}/venues/{four_top.venue_id}/dates",
            params={"party_size": 2, "start_date": "2025-06-01", "days": 3},
        )

        assert response.json()["available_dates"] == ["2025-06-01", "2025-06-02", "2025-06-03"]

    def test_validate_outside_hours(self, client, four_top, dinner_window):
        response = client.post(
            f"{AVAILABILITY}/validate",
            json={
                "venue_id": four_top.venue_id,
                "booking_date": "2025-06-01",
                "booking_time": "23:00:00",
                "party_size": 2,
            },
        )

        body = response.json()
        assert body["valid"] is False
        assert body["reason"] == "outside booking hours"

    def test_allocation_preview_writes_nothing(self, client, four_top):
        response = client.post(
            f"{AVAILABILITY}/allocate",
            json={
                "venue_id": four_top.venue_id,
                "booking_date": "2025-06-01",
                "booking_time": "19:00:00",
                "party_size": 3,
            },
        )

        assert response.json()["table_ids"] == [four_top.id]
        listing = client.get(BOOKINGS + "/", params={"venue_id": four_top.venue_id})
        assert listing.json() == []

    def test_walk_in_check(self, client, four_top):
        BookingFactory(venue_id=four_top.venue_id, table_id=four_top.id, booking_time=time(19, 0))

        response = client.post(
            f"{AVAILABILITY}/walk-in",
            json={
                "venue_id": four_top.venue_id,
                "table_ids": [four_top.id],
                "booking_date": "2025-06-01",
                "start_time": "18:00:00",
                "duration_minutes": 90,
            },
        )

        body = response.json()
        assert body["has_conflict"] is True
        assert body["max_available_duration"] == 60
        assert body["next_booking_time"] == "19:00"


class TestBookingAPI:

    def test_create_booking_allocates_table(self, client, four_top):
        response = client.post(BOOKINGS + "/", json=booking_payload(four_top.venue_id))

        assert response.status_code == 201
        body = response.json()
        assert body["booking"]["table_id"] == four_top.id
        assert body["booking"]["is_unallocated"] is False
        assert body["allocation"]["table_ids"] == [four_top.id]

    def test_create_booking_kept_unallocated_when_full(self, client, four_top, dinner_window):
        BookingFactory(venue_id=four_top.venue_id, table_id=four_top.id, booking_time=time(19, 0))

        response = client.post(BOOKINGS + "/", json=booking_payload(four_top.venue_id))

        assert response.status_code == 201
        body = response.json()
        assert body["booking"]["is_unallocated"] is True
        assert body["booking"]["table_id"] is None
        assert body["allocation"]["reason"] == "fully booked"
        assert body["allocation"]["alternatives"]

    def test_guest_booking_skips_staff_only_tables(self, client, venue):
        TableFactory(venue=venue, seats=4, online_bookable=False)

        response = client.post(BOOKINGS + "/", json=booking_payload(venue.id))

        assert response.json()["booking"]["is_unallocated"] is True

    def test_create_booking_unknown_venue(self, client):
        response = client.post(BOOKINGS + "/", json=booking_payload("nowhere"))

        assert response.status_code == 404
        assert response.json()["error_code"] == "NOT_FOUND"

    def test_create_booking_releases_hold(self, client, four_top):
        hold = client.post(
            HOLDS + "/",
            json={
                "venue_id": four_top.venue_id,
                "booking_date": "2025-06-01",
                "start_time": "19:00:00",
                "party_size": 2,
            },
        ).json()

        client.post(
            BOOKINGS + "/",
            json=booking_payload(four_top.venue_id, service_id=None, hold_token=hold["lock_token"]),
        )

        released = client.post(f"{HOLDS}/{hold['lock_token']}/release").json()
        assert released["reason"] == "booked"

    def test_get_booking_not_found(self, client):
        response = client.get(f"{BOOKINGS}/9999")

        assert response.status_code == 404

    def test_cancel_frees_the_table(self, client, four_top):
        created = client.post(BOOKINGS + "/", json=booking_payload(four_top.venue_id)).json()

        response = client.post(f"{BOOKINGS}/{created['booking']['id']}/cancel")
        slot = client.get(
            f"{AVAILABILITY}/venues/{four_top.venue_id}/slot",
            params={"booking_date": "2025-06-01", "booking_time": "19:00", "party_size": 2},
        )

        assert response.json()["status"] == "cancelled"
        assert slot.json()["available"] is True

    def test_reallocate_after_staff_frees_table(self, client, four_top):
        blocker = BookingFactory(venue_id=four_top.venue_id, table_id=four_top.id, booking_time=time(19, 0))
        created = client.post(BOOKINGS + "/", json=booking_payload(four_top.venue_id)).json()
        assert created["booking"]["is_unallocated"] is True

        client.patch(f"{BOOKINGS}/{blocker.id}/status", json={"status": "cancelled"})
        response = client.post(f"{BOOKINGS}/{created['booking']['id']}/allocate")

        assert response.json()["table_ids"] == [four_top.id]

    def test_list_unallocated(self, client, four_top):
        BookingFactory(venue_id=four_top.venue_id, table_id=four_top.id)
        waiting = BookingFactory(venue_id=four_top.venue_id)

        response = client.get(
            BOOKINGS + "/", params={"venue_id": four_top.venue_id, "unallocated_only": True}
        )

        assert [b["id"] for b in response.json()] == [waiting.id]

    def test_create_booking_with_unknown_hold_rejected(self, client, four_top):
        response = client.post(
            BOOKINGS + "/", json=booking_payload(four_top.venue_id, hold_token="missing")
        )
        listed = client.get(BOOKINGS + "/", params={"venue_id": four_top.venue_id})

        assert response.status_code == 404
        assert listed.json() == []


class TestHoldAPI:

    def test_second_hold_conflicts(self, client, venue):
        payload = {
            "venue_id": venue.id,
            "booking_date": "2025-06-01",
            "start_time": "19:00:00",
            "party_size": 2,
        }

        first = client.post(HOLDS + "/", json=payload)
        second = client.post(HOLDS + "/", json=payload)

        assert first.status_code == 201
        assert second.status_code == 409
        assert second.json()["error_code"] == "SLOT_LOCKED"


class TestBlockAPI:

    def slot(self, client, venue_id):
        return client.get(
            f"{AVAILABILITY}/venues/{venue_id}/slot",
            params={"booking_date": "2025-06-01", "booking_time": "19:00", "party_size": 2},
        ).json()

    def test_block_closes_slot_until_removed(self, client, four_top):
        assert self.slot(client, four_top.venue_id)["available"] is True

        created = client.post(
            BLOCKS + "/",
            json={
                "venue_id": four_top.venue_id,
                "block_date": "2025-06-01",
                "start_time": "18:00:00",
                "end_time": "20:00:00",
                "table_ids": [four_top.id],
                "reason": "Private event",
            },
        )
        assert created.status_code == 201
        assert self.slot(client, four_top.venue_id)["available"] is False

        listed = client.get(BLOCKS + "/", params={"venue_id": four_top.venue_id})
        assert [b["id"] for b in listed.json()] == [created.json()["id"]]

        removed = client.delete(f"{BLOCKS}/{created.json()['id']}")
        assert removed.status_code == 204
        assert self.slot(client, four_top.venue_id)["available"] is True

    def test_block_with_foreign_table_rejected(self, client, four_top):
        other = TableFactory(seats=2)

        response = client.post(
            BLOCKS + "/",
            json={
                "venue_id": four_top.venue_id,
                "block_date": "2025-06-01",
                "start_time": "18:00:00",
                "end_time": "20:00:00",
                "table_ids": [other.id],
            },
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_INPUT"

    def test_block_end_before_start_rejected(self, client, venue):
        response = client.post(
            BLOCKS + "/",
            json={
                "venue_id": venue.id,
                "block_date": "2025-06-01",
                "start_time": "20:00:00",
                "end_time": "18:00:00",
            },
        )

        assert response.status_code == 422

    def test_delete_unknown_block(self, client):
        assert client.delete(f"{BLOCKS}/9999").status_code == 404
