"""
Shared fixtures: an in-memory SQLite database, an in-memory stand-in for the
redis client, and factories for users, admins, rooms and reservations.
"""
import os
import tempfile

# Settings are read at import time, so configure before importing the app
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CACHE_ENABLED"] = "false"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["UPLOAD_DIR"] = os.path.join(tempfile.gettempdir(), "studyseat-test-uploads")

import fnmatch
from datetime import date, datetime, time, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.security import ROLE_ADMIN, ROLE_USER, create_access_token, get_password_hash
from app.db.base import Base
from app.db.session import get_db
from app.main import app
from app.models.admin import Admin
from app.models.reservation import Reservation, ReservationStatus
from app.models.seat import Seat
from app.models.user import User
from app.schemas.study_room import StudyRoomCreate
from app.services.cache import SeatStatusCache, get_cache
from app.services.study_rooms import create_room
from app.utils.clock import local_now

PASSWORD = "password123"
PASSWORD_HASH = get_password_hash(PASSWORD)


class FakeRedis:
    """Dict-backed stand-in for the handful of redis client calls the cache makes."""

    def __init__(self) -> None:
        self.store: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    def get(self, key):
        return self.store.get(key)

    def setex(self, key, ttl, value):
        self.store[key] = value
        self.ttls[key] = ttl

    def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    def scan_iter(self, match=None):
        for key in list(self.store):
            if match is None or fnmatch.fnmatchcase(key, match):
                yield key


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def cache(fake_redis) -> SeatStatusCache:
    return SeatStatusCache(fake_redis, ttl_seconds=60 * 60 * 24)


@pytest.fixture
def client(db, cache):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache] = lambda: cache
    # Not used as a context manager, so the lifespan (DB bootstrap, sweepers) never runs
    yield TestClient(app)
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_user(db):
    def _make(username="alice", **kwargs):
        user = User(
            username=username,
            password_hash=PASSWORD_HASH,
            no_show_count=kwargs.pop("no_show_count", 0),
            is_blacklisted=kwargs.pop("is_blacklisted", False),
            **kwargs,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def make_admin(db):
    def _make(username="admin"):
        admin = Admin(username=username, password_hash=PASSWORD_HASH)
        db.add(admin)
        db.commit()
        db.refresh(admin)
        return admin
    return _make


@pytest.fixture
def make_room(db):
    def _make(name="Reading Room A", capacity=3, open_time="08:00", close_time="22:00", **kwargs):
        room = create_room(db, StudyRoomCreate(
            name=name,
            capacity=capacity,
            open_time=open_time,
            close_time=close_time,
            **kwargs,
        ))
        return room
    return _make


@pytest.fixture
def seats_of(db):
    def _seats(room):
        return db.query(Seat).filter(Seat.study_room_id == room.id).order_by(Seat.seat_number).all()
    return _seats


@pytest.fixture
def make_reservation(db):
    """Insert a reservation row directly, bypassing booking validation."""
    def _make(user, seat, on_date, start, end, status=ReservationStatus.PENDING, **kwargs):
        reservation = Reservation(
            user_id=user.id,
            seat_id=seat.id,
            study_room_id=seat.study_room_id,
            date=on_date,
            start_time=start,
            end_time=end,
            status=status,
            **kwargs,
        )
        db.add(reservation)
        db.commit()
        db.refresh(reservation)
        return reservation
    return _make


# ---------------------------------------------------------------------------
# Auth / time helpers
# ---------------------------------------------------------------------------


def user_headers(user) -> dict:
    token = create_access_token(subject=user.username, user_id=str(user.id), role=ROLE_USER)
    return {"Authorization": f"Bearer {token}"}


def admin_headers(admin) -> dict:
    token = create_access_token(subject=admin.username, user_id=str(admin.id), role=ROLE_ADMIN)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def tomorrow() -> date:
    return local_now().date() + timedelta(days=1)


def t(value: str) -> time:
    return datetime.strptime(value, "%H:%M").time()
