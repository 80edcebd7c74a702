"""
Redis read cache for seat status lookups and per-room seat lists.

Keys:
    seat:status:<seat_id>:<date>:<start>:<end>   one seat's status for a time range
    study_room:seats:<room_id>                   serialized seat list of a room

Entries expire after ``CACHE_TTL_SECONDS`` and are invalidated explicitly by
the write paths that change them. Redis failures are logged and treated as a
cache miss so a cache outage never fails a request.
"""
import json
import logging
from typing import Any, Optional

import redis

from app.core.config import settings

logger = logging.getLogger(__name__)

SEAT_STATUS_PREFIX = "seat:status"
ROOM_SEATS_PREFIX = "study_room:seats"


def seat_status_key(seat_id, date, start_time, end_time) -> str:
    return f"{SEAT_STATUS_PREFIX}:{seat_id}:{date}:{start_time}:{end_time}"


def room_seats_key(room_id) -> str:
    return f"{ROOM_SEATS_PREFIX}:{room_id}"


class SeatStatusCache:
    def __init__(self, client: Optional[Any], ttl_seconds: int = settings.CACHE_TTL_SECONDS):
        self.client = client
        self.ttl_seconds = ttl_seconds

    def _get(self, key: str) -> Optional[Any]:
        if self.client is None:
            return None
        try:
            raw = self.client.get(key)
        except redis.RedisError:
            logger.warning("Cache read failed for %s", key, exc_info=True)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Discarding undecodable cache entry %s", key)
            return None

    def _set(self, key: str, value: Any) -> None:
        if self.client is None:
            return
        try:
            self.client.setex(key, self.ttl_seconds, json.dumps(value, default=str))
        except redis.RedisError:
            logger.warning("Cache write failed for %s", key, exc_info=True)

    def _delete_pattern(self, pattern: str) -> int:
        if self.client is None:
            return 0
        try:
            keys = list(self.client.scan_iter(match=pattern))
            if keys:
                self.client.delete(*keys)
            return len(keys)
        except redis.RedisError:
            logger.warning("Cache invalidation failed for %s", pattern, exc_info=True)
            return 0

    # --- seat status for a time range ---

    def get_seat_status(self, seat_id, date, start_time, end_time) -> Optional[dict]:
        return self._get(seat_status_key(seat_id, date, start_time, end_time))

    def set_seat_status(self, seat_id, date, start_time, end_time, value: dict) -> None:
        self._set(seat_status_key(seat_id, date, start_time, end_time), value)

    def invalidate_seat(self, seat_id) -> int:
        count = self._delete_pattern(f"{SEAT_STATUS_PREFIX}:{seat_id}:*")
        if count:
            logger.debug("Invalidated %d cached status entries for seat %s", count, seat_id)
        return count

    # --- room seat lists ---

    def get_room_seats(self, room_id) -> Optional[list]:
        return self._get(room_seats_key(room_id))

    def set_room_seats(self, room_id, value: list) -> None:
        self._set(room_seats_key(room_id), value)

    def invalidate_room(self, room_id) -> None:
        if self.client is None:
            return
        try:
            self.client.delete(room_seats_key(room_id))
        except redis.RedisError:
            logger.warning("Cache invalidation failed for room %s", room_id, exc_info=True)


_cache: Optional[SeatStatusCache] = None


def get_cache() -> SeatStatusCache:
    """FastAPI dependency returning the process-wide cache."""
    global _cache
    if _cache is None:
        client = None
        if settings.CACHE_ENABLED:
            client = redis.from_url(
                settings.REDIS_URL,
                decode_responses=True,
                socket_connect_timeout=5,
            )
        _cache = SeatStatusCache(client)
    return _cache
