from datetime import datetime, timedelta

import pytest

from app.core.exceptions import BusinessRuleError
from app.models.seat import SeatStatus
from app.models.study_room import StudyRoomStatus
from app.services import availability
from conftest import t

NOW = datetime(2024, 6, 3, 10, 30)
TODAY = NOW.date()


def test_free_intervals():
    gaps = availability.free_intervals(
        t("08:00"), t("22:00"),
        [(t("12:00"), t("13:00")), (t("10:00"), t("12:00")), (t("20:00"), t("23:00"))],
    )
    assert gaps == [(t("08:00"), t("10:00")), (t("13:00"), t("20:00"))]


def test_free_intervals_without_bookings():
    assert availability.free_intervals(t("08:00"), t("22:00"), []) == [(t("08:00"), t("22:00"))]


@pytest.mark.parametrize(
    "now, expected",
    [
        (datetime(2024, 6, 3, 9, 30), ("09:00", "10:00")),
        (datetime(2024, 6, 3, 23, 10), ("23:00", "23:59")),
    ],
)
def test_default_range(now, expected):
    on_date, start, end = availability.default_range(now)
    assert on_date == now.date()
    assert (start, end) == (t(expected[0]), t(expected[1]))


@pytest.fixture
def room_setup(make_user, make_room, seats_of, make_reservation, db):
    user = make_user()
    room = make_room()
    seats = seats_of(room)
    seats[2].status = SeatStatus.UNAVAILABLE
    db.commit()
    make_reservation(user, seats[0], TODAY, t("10:00"), t("12:00"))
    return room, seats


class TestAvailableSlots:
    def test_gaps_per_bookable_seat(self, room_setup, db):
        room, _ = room_setup
        result = availability.available_slots(db, room.id, TODAY, now=NOW)

        assert result.total_seats == 3
        assert result.available_seats == 2
        assert set(result.seat_availability) == {"001", "002"}
        assert [(s.start_time, s.end_time) for s in result.seat_availability["001"]] == [
            (t("08:00"), t("10:00")),
            (t("12:00"), t("22:00")),
        ]

    def test_respects_room_advance_window(self, make_room, db):
        room = make_room(max_advance_days=2)
        availability.available_slots(db, room.id, TODAY + timedelta(days=2), now=NOW)
        with pytest.raises(BusinessRuleError):
            availability.available_slots(db, room.id, TODAY + timedelta(days=3), now=NOW)

    def test_closed_room(self, make_room, db):
        room = make_room(status=StudyRoomStatus.MAINTENANCE)
        with pytest.raises(BusinessRuleError):
            availability.available_slots(db, room.id, TODAY, now=NOW)


class TestRoomViews:
    def test_occupancy_states(self, room_setup, make_user, make_reservation, db):
        room, seats = room_setup
        assert availability.room_occupancy(db, room, TODAY, t("13:00"), t("14:00")).status == "EMPTY"

        partial = availability.room_occupancy(db, room, TODAY, t("11:00"), t("12:00"))
        assert partial.status == "AVAILABLE"
        assert partial.occupied_seats == 1

        other = make_user("bob")
        make_reservation(other, seats[1], TODAY, t("11:00"), t("12:00"))
        make_reservation(other, seats[2], TODAY, t("08:00"), t("09:00"))
        assert availability.room_occupancy(db, room, TODAY, t("08:00"), t("12:00")).status == "FULL"

    def test_all_rooms_closed_outside_hours(self, make_room, db):
        make_room("Early Room", open_time="08:00", close_time="12:00")
        make_room("Late Room", open_time="14:00", close_time="22:00")
        statuses = {r.name: r.status for r in availability.all_rooms_status(db, TODAY, t("15:00"), t("16:00"))}
        assert statuses == {"Early Room": "CLOSED", "Late Room": "AVAILABLE"}

    def test_seats_status(self, room_setup, db):
        room, _ = room_setup
        result = availability.room_seats_status(db, room, TODAY, t("10:30"), t("11:00"))
        assert [s.status for s in result.seats] == ["OCCUPIED", "AVAILABLE", "UNAVAILABLE"]

    def test_detail_without_usable_seats(self, make_room, seats_of, db):
        room = make_room(capacity=1)
        seats_of(room)[0].status = SeatStatus.UNAVAILABLE
        db.commit()
        detail = availability.room_detail(db, room, TODAY, t("10:00"), t("11:00"))
        assert detail.status == "NO_AVAILABLE_SEATS"
        assert detail.physical_status == "AVAILABLE"


class TestSeatViews:
    def test_real_time_occupied(self, room_setup, db):
        _, seats = room_setup
        status = availability.seat_real_time_status(db, seats[0], TODAY, now=NOW)
        assert status.status == "OCCUPIED"
        assert status.current_reservation.start_time == t("10:00")
        assert len(status.reserved_slots) == 1

    def test_real_time_closed_and_unavailable(self, room_setup, db):
        _, seats = room_setup
        night = datetime.combine(TODAY, t("23:00"))
        assert availability.seat_real_time_status(db, seats[1], TODAY, now=night).status == "CLOSED"
        assert availability.seat_real_time_status(db, seats[2], TODAY, now=NOW).status == "UNAVAILABLE"
        assert availability.seat_real_time_status(db, seats[1], TODAY, now=NOW).status == "AVAILABLE"

    def test_time_slot_status(self, room_setup, db):
        _, seats = room_setup
        reserved = availability.seat_time_slot_status(db, seats[0], TODAY, t("11:00"), t("13:00"))
        assert reserved.status == "RESERVED"
        assert len(reserved.conflicts) == 1
        assert availability.seat_time_slot_status(db, seats[0], TODAY, t("12:00"), t("13:00")).status == "AVAILABLE"
        assert availability.seat_time_slot_status(db, seats[0], TODAY, t("06:00"), t("07:00")).status == "CLOSED"
        assert availability.seat_time_slot_status(db, seats[2], TODAY, t("12:00"), t("13:00")).status == "UNAVAILABLE"
