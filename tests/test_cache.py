from datetime import date
from uuid import uuid4

import redis

from app.services.cache import SeatStatusCache, room_seats_key, seat_status_key
from conftest import t

DAY = date(2024, 6, 4)


class BrokenRedis:
    def __getattr__(self, name):
        def fail(*args, **kwargs):
            raise redis.ConnectionError("redis is down")
        return fail


def test_key_format():
    seat_id = uuid4()
    assert seat_status_key(seat_id, DAY, t("10:00"), t("12:00")) == f"seat:status:{seat_id}:2024-06-04:10:00:00:12:00:00"
    assert room_seats_key(seat_id) == f"study_room:seats:{seat_id}"


def test_round_trip_and_ttl(cache, fake_redis):
    seat_id = uuid4()
    cache.set_seat_status(seat_id, DAY, t("10:00"), t("12:00"), {"status": "AVAILABLE"})
    assert cache.get_seat_status(seat_id, DAY, t("10:00"), t("12:00")) == {"status": "AVAILABLE"}
    assert set(fake_redis.ttls.values()) == {24 * 60 * 60}


def test_invalidate_seat_only_touches_that_seat(cache, fake_redis):
    seat_a, seat_b = uuid4(), uuid4()
    cache.set_seat_status(seat_a, DAY, t("10:00"), t("12:00"), {"status": "AVAILABLE"})
    cache.set_seat_status(seat_a, DAY, t("13:00"), t("14:00"), {"status": "RESERVED"})
    cache.set_seat_status(seat_b, DAY, t("10:00"), t("12:00"), {"status": "AVAILABLE"})

    assert cache.invalidate_seat(seat_a) == 2
    assert cache.get_seat_status(seat_b, DAY, t("10:00"), t("12:00")) is not None


def test_invalidate_room(cache):
    room_id = uuid4()
    cache.set_room_seats(room_id, [{"seat_number": "001"}])
    cache.invalidate_room(room_id)
    assert cache.get_room_seats(room_id) is None


def test_redis_errors_are_swallowed():
    cache = SeatStatusCache(BrokenRedis())
    seat_id = uuid4()
    cache.set_seat_status(seat_id, DAY, t("10:00"), t("12:00"), {"status": "AVAILABLE"})
    assert cache.get_seat_status(seat_id, DAY, t("10:00"), t("12:00")) is None
    assert cache.invalidate_seat(seat_id) == 0
    cache.invalidate_room(seat_id)


def test_disabled_cache_is_a_no_op():
    cache = SeatStatusCache(None)
    cache.set_room_seats(uuid4(), [])
    assert cache.get_room_seats(uuid4()) is None
