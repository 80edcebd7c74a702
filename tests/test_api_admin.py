from datetime import timedelta

import pytest

from app.models.reservation import Reservation, ReservationStatus
from app.models.seat import Seat
from conftest import admin_headers, t, user_headers


@pytest.fixture
def admin(make_admin):
    return make_admin()


@pytest.fixture
def headers(admin):
    return admin_headers(admin)


ROOM = {
    "name": "Quiet Room",
    "location": "Library 2F",
    "capacity": 4,
    "open_time": "08:00",
    "close_time": "22:00",
}


class TestStudyRooms:
    def test_create_generates_seats(self, client, headers):
        res = client.post("/api/admins/study-rooms", json=ROOM, headers=headers)
        assert res.status_code == 201
        room = res.json()
        assert room["status"] == "AVAILABLE"
        assert room["image_url"]

        seats = client.get(f"/api/seats/study-room/{room['id']}", headers=headers).json()
        assert [s["seat_number"] for s in seats] == ["001", "002", "003", "004"]

    @pytest.mark.parametrize(
        "override",
        [{"capacity": 0}, {"open_time": "25:00"}, {"open_time": "22:00", "close_time": "08:00"}],
    )
    def test_create_validation(self, client, headers, override):
        res = client.post("/api/admins/study-rooms", json={**ROOM, **override}, headers=headers)
        assert res.status_code == 400

    def test_capacity_changes(self, client, headers, make_room, seats_of, make_user, make_reservation, tomorrow):
        room = make_room(capacity=4)
        seats = seats_of(room)

        res = client.put(f"/api/admins/study-rooms/{room.id}", json={"capacity": 6}, headers=headers)
        assert res.json()["capacity"] == 6
        assert [s.seat_number for s in seats_of(room)][-2:] == ["005", "006"]

        res = client.put(f"/api/admins/study-rooms/{room.id}", json={"capacity": 3}, headers=headers)
        assert res.status_code == 200
        assert [s.seat_number for s in seats_of(room)] == ["001", "002", "003"]

        make_reservation(make_user(), seats[2], tomorrow, t("10:00"), t("11:00"))
        res = client.put(f"/api/admins/study-rooms/{room.id}", json={"capacity": 2}, headers=headers)
        assert res.status_code == 400
        assert len(seats_of(room)) == 3

    def test_delete_rejected_with_reservations(self, client, headers, db, make_room, seats_of, make_user, make_reservation, tomorrow):
        busy, empty = make_room("Busy"), make_room("Empty")
        make_reservation(make_user(), seats_of(busy)[0], tomorrow, t("10:00"), t("11:00"))

        assert client.delete(f"/api/admins/study-rooms/{busy.id}", headers=headers).status_code == 400
        assert client.delete(f"/api/admins/study-rooms/{empty.id}", headers=headers).status_code == 200
        assert db.query(Seat).filter(Seat.study_room_id == empty.id).count() == 0

    def test_status_and_upload(self, client, headers, make_room):
        room = make_room()
        res = client.put(f"/api/admins/study-rooms/{room.id}/status", json={"status": "MAINTENANCE"}, headers=headers)
        assert res.json()["status"] == "MAINTENANCE"

        res = client.post(
            f"/api/admins/study-rooms/{room.id}/upload-image",
            files={"file": ("front door.png", b"\x89PNG fake", "image/png")},
            headers=headers,
        )
        assert res.status_code == 200
        url = res.json()["image_url"]
        assert url.startswith("/uploads/study-rooms/")
        assert url.endswith("_front_door.png")

    def test_upload_rejects_non_images(self, client, headers, make_room):
        room = make_room()
        res = client.post(
            f"/api/admins/study-rooms/{room.id}/upload-image",
            files={"file": ("notes.txt", b"hello", "text/plain")},
            headers=headers,
        )
        assert res.status_code == 400

    def test_room_seat_views(self, client, headers, make_room, tomorrow):
        room = make_room()
        params = {"date": tomorrow.isoformat(), "start_time": "09:00", "end_time": "10:00"}
        res = client.get(f"/api/admins/study-rooms/{room.id}/seats/status-for-time-slot", params=params, headers=headers)
        assert {s["status"] for s in res.json()} == {"AVAILABLE"}

        res = client.get(f"/api/admins/study-rooms/{room.id}/seats/real-time-status", headers=headers)
        assert len(res.json()) == 3

        res = client.get(f"/api/admins/study-rooms/{room.id}/available-slots", params={"date": tomorrow.isoformat()}, headers=headers)
        assert res.json()["available_seats"] == 3

    def test_not_found(self, client, headers, admin):
        res = client.get(f"/api/admins/study-rooms/{admin.id}", headers=headers)
        assert res.status_code == 404
        assert res.json()["message"].startswith("Study room not found")


class TestSeats:
    def test_create_duplicate_and_batch(self, client, headers, make_room, cache):
        room = make_room(capacity=2)
        client.get(f"/api/seats/study-room/{room.id}", headers=headers)
        assert cache.get_room_seats(room.id) is not None

        res = client.post("/api/seats", json={"study_room_id": str(room.id), "seat_number": "001"}, headers=headers)
        assert res.status_code == 400

        res = client.post("/api/seats", json={"study_room_id": str(room.id), "seat_number": "W1"}, headers=headers)
        assert res.status_code == 201
        assert cache.get_room_seats(room.id) is None

        res = client.post(f"/api/seats/batch/{room.id}", json={"count": 3, "prefix": "W"}, headers=headers)
        assert res.json()["created_count"] == 2
        assert res.json()["skipped"] == ["W1"]

        seats = client.get(f"/api/seats/study-room/{room.id}", headers=headers).json()
        assert len(seats) == 5

    def test_status_update_invalidates(self, client, headers, make_room, seats_of, tomorrow, cache):
        seat = seats_of(make_room())[0]
        params = {"date": tomorrow.isoformat(), "start_time": "10:00", "end_time": "11:00"}
        first = client.get(f"/api/seats/{seat.id}/status-for-time-slot", params=params, headers=headers).json()
        assert first["status"] == "AVAILABLE"
        assert cache.get_seat_status(seat.id, tomorrow, t("10:00"), t("11:00")) is not None

        res = client.put(f"/api/seats/{seat.id}/status", json={"status": "unavailable"}, headers=headers)
        assert res.json()["status"] == "UNAVAILABLE"
        assert cache.get_seat_status(seat.id, tomorrow, t("10:00"), t("11:00")) is None

        second = client.get(f"/api/seats/{seat.id}/status-for-time-slot", params=params, headers=headers).json()
        assert second["status"] == "UNAVAILABLE"

    def test_hours_change_invalidates(self, client, headers, make_room, seats_of, tomorrow):
        room = make_room(close_time="20:00")
        seat = seats_of(room)[0]
        params = {"date": tomorrow.isoformat(), "start_time": "20:00", "end_time": "21:00"}
        url = f"/api/seats/{seat.id}/status-for-time-slot"
        assert client.get(url, params=params, headers=headers).json()["status"] == "CLOSED"

        res = client.put(f"/api/admins/study-rooms/{room.id}", json={"close_time": "22:00"}, headers=headers)
        assert res.status_code == 200
        assert client.get(url, params=params, headers=headers).json()["status"] == "AVAILABLE"

    def test_invalid_status(self, client, headers, make_room, seats_of):
        seat = seats_of(make_room())[0]
        res = client.put(f"/api/seats/{seat.id}/status", json={"status": "BROKEN"}, headers=headers)
        assert res.status_code == 400
        assert "AVAILABLE" in res.json()["message"]

    def test_delete(self, client, headers, make_room, seats_of):
        room = make_room()
        seat = seats_of(room)[0]
        assert client.delete(f"/api/seats/{seat.id}", headers=headers).status_code == 200
        res = client.delete(f"/api/seats/study-room/{room.id}", headers=headers)
        assert res.json()["count"] == 2

    def test_users_cannot_modify(self, client, make_user, make_room, seats_of):
        seat = seats_of(make_room())[0]
        res = client.put(f"/api/seats/{seat.id}/status", json={"status": "UNAVAILABLE"}, headers=user_headers(make_user()))
        assert res.status_code == 403


class TestAdminReservations:
    @pytest.fixture
    def bookings(self, make_user, make_room, seats_of, make_reservation, tomorrow):
        alice, bob = make_user("alice"), make_user("bob")
        seats = seats_of(make_room())
        return [
            make_reservation(alice, seats[0], tomorrow, t("10:00"), t("11:00")),
            make_reservation(bob, seats[1], tomorrow, t("10:00"), t("11:00")),
            make_reservation(alice, seats[0], tomorrow + timedelta(days=1), t("10:00"), t("11:00")),
        ]

    def test_search_and_paginate(self, client, headers, bookings):
        res = client.get("/api/admin/reservations", params={"size": 2}, headers=headers)
        body = res.json()
        assert body["total"] == 3
        assert body["total_pages"] == 2
        assert len(body["data"]) == 2
        assert body["data"][0]["date"] == bookings[2].date.isoformat()

        res = client.get("/api/admin/reservations", params={"user_id": str(bookings[0].user_id)}, headers=headers)
        assert {r["username"] for r in res.json()["data"]} == {"alice"}

        res = client.get(
            "/api/admin/reservations",
            params={"start_date": bookings[0].date.isoformat(), "end_date": bookings[0].date.isoformat(), "sort": "date,asc"},
            headers=headers,
        )
        assert res.json()["total"] == 2

    def test_bad_sort(self, client, headers, bookings):
        res = client.get("/api/admin/reservations", params={"sort": "password,asc"}, headers=headers)
        assert res.status_code == 400

    def test_soft_delete(self, client, headers, admin, bookings, db):
        target = bookings[0]
        assert client.delete(f"/api/admin/reservations/{target.id}", headers=headers).status_code == 200

        row = db.query(Reservation).filter(Reservation.id == target.id).one()
        assert row.is_deleted is True
        assert row.deleted_by == admin.id
        assert client.get("/api/admin/reservations", headers=headers).json()["total"] == 2

    def test_adjust_status(self, client, headers, bookings, db):
        target = bookings[0]
        res = client.put(f"/api/admin/reservations/{target.id}/adjust-status", json={"status": "CHECKED_IN"}, headers=headers)
        assert res.status_code == 400

        target.status = ReservationStatus.NO_SHOW
        db.commit()
        res = client.put(f"/api/admin/reservations/{target.id}/adjust-status", json={"status": "CHECKED_IN"}, headers=headers)
        assert res.status_code == 200
        assert res.json()["status"] == "CHECKED_IN"
        assert res.json()["adjusted_by"] is not None


class TestFeedback:
    def test_submit_and_process(self, client, headers, make_user):
        alice, bob = make_user("alice"), make_user("bob")
        res = client.post("/api/feedback", json={"content": "Seat 003 lamp is broken", "type": "FACILITY"}, headers=user_headers(alice))
        assert res.status_code == 201
        feedback_id = res.json()["id"]
        assert res.json()["status"] == "PENDING"

        assert len(client.get("/api/feedback", headers=user_headers(alice)).json()) == 1
        assert client.get("/api/feedback", headers=user_headers(bob)).json() == []
        assert client.get(f"/api/feedback/{feedback_id}", headers=user_headers(bob)).status_code == 403

        res = client.put(f"/api/admin/feedback/{feedback_id}/process", json={"response": "Fixed"}, headers=headers)
        assert res.json()["status"] == "PROCESSED"
        assert res.json()["processed_at"] is not None

        res = client.get("/api/admin/feedback", params={"status": "PROCESSED"}, headers=headers)
        assert [f["id"] for f in res.json()] == [feedback_id]

    def test_requires_content(self, client, make_user):
        res = client.post("/api/feedback", json={"content": "", "type": "OTHER"}, headers=user_headers(make_user()))
        assert res.status_code == 400

    def test_process_requires_response(self, client, headers, make_user):
        res = client.post("/api/feedback", json={"content": "Too noisy", "type": "NOISE"}, headers=user_headers(make_user()))
        res = client.put(f"/api/admin/feedback/{res.json()['id']}/process", json={}, headers=headers)
        assert res.status_code == 400


def test_clean_orphaned_seats(client, headers, db, make_room):
    import uuid

    make_room(capacity=1)
    db.add(Seat(study_room_id=uuid.uuid4(), seat_number="X1"))
    db.commit()

    res = client.post("/api/admins/study-rooms/clean-orphaned-seats", headers=headers)
    assert res.json()["count"] == 1
    assert db.query(Seat).count() == 1
