import uuid
from datetime import datetime, timedelta

import pytest

from app.core.exceptions import BusinessRuleError, ResourceNotFoundError
from app.services import blacklist

NOW = datetime(2024, 6, 3, 9, 0)


def test_no_show_threshold(make_user, db):
    user = make_user()
    assert blacklist.increment_no_show_count(user, now=NOW) is False
    assert blacklist.increment_no_show_count(user, now=NOW) is False
    assert user.is_blacklisted is False

    assert blacklist.increment_no_show_count(user, now=NOW) is True
    assert user.no_show_count == 3
    assert user.is_blacklisted is True
    assert user.blacklist_start_time == NOW


def test_increment_from_reset_count(make_user):
    user = make_user(no_show_count=None)
    blacklist.increment_no_show_count(user, now=NOW)
    assert user.no_show_count == 1


def test_remaining_time_is_clamped(make_user):
    user = make_user(is_blacklisted=True, blacklist_start_time=NOW - timedelta(days=3))
    assert blacklist.remaining_time_ms(user, now=NOW) == 0


def test_remaining_time(make_user):
    user = make_user(is_blacklisted=True, blacklist_start_time=NOW - timedelta(hours=47))
    assert blacklist.remaining_time_ms(user, now=NOW) == 60 * 60 * 1000


def test_manual_add_and_remove(make_user, db):
    user = make_user()
    blacklist.add_to_blacklist(db, user.id, now=NOW)
    assert user.is_blacklisted is True
    assert user.blacklist_start_time == NOW

    with pytest.raises(BusinessRuleError):
        blacklist.add_to_blacklist(db, user.id, now=NOW)

    blacklist.remove_from_blacklist(db, user.id)
    assert user.is_blacklisted is False
    assert user.no_show_count is None


def test_unknown_user(db):
    with pytest.raises(ResourceNotFoundError):
        blacklist.remove_from_blacklist(db, uuid.uuid4())


def test_list_and_status(make_user, db):
    make_user("clean")
    flagged = make_user("flagged", is_blacklisted=True, no_show_count=3, blacklist_start_time=NOW - timedelta(days=1))

    entries = blacklist.list_blacklisted(db, now=NOW)
    assert [e.username for e in entries] == ["flagged"]
    assert entries[0].remaining_time == 24 * 60 * 60 * 1000
    assert entries[0].reason == blacklist.BLACKLIST_REASON

    status = blacklist.blacklist_status(db, flagged.id, now=NOW)
    assert status.is_blacklisted is True
    assert status.blacklist_end_time == NOW + timedelta(days=1)
