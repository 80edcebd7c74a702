import logging
from datetime import datetime, timedelta
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import BusinessRuleError, ResourceNotFoundError, UserBlacklistedError
from app.models.user import User
from app.schemas.user import BlacklistEntry, BlacklistStatus
from app.utils.clock import local_now

logger = logging.getLogger(__name__)

BLACKLIST_REASON = "Repeated no-shows"


def blacklist_duration() -> timedelta:
    return timedelta(days=settings.BLACKLIST_DURATION_DAYS)


def blacklist_end_time(user: User) -> Optional[datetime]:
    if not user.blacklist_start_time:
        return None
    return user.blacklist_start_time + blacklist_duration()


def remaining_time_ms(user: User, now: Optional[datetime] = None) -> int:
    """Milliseconds left on the user's blacklist, clamped at zero."""
    end = blacklist_end_time(user)
    if not user.is_blacklisted or end is None:
        return 0
    now = now or local_now()
    return max(0, int((end - now).total_seconds() * 1000))


def ensure_not_blacklisted(user: User, now: Optional[datetime] = None) -> None:
    if user.is_blacklisted:
        raise UserBlacklistedError(
            "User is blacklisted and cannot reserve or check in",
            remaining_time=remaining_time_ms(user, now),
            blacklist_end_time=blacklist_end_time(user),
        )


def increment_no_show_count(user: User, now: Optional[datetime] = None) -> bool:
    """Record a no-show. Returns True when this pushed the user onto the blacklist.

    The caller owns the transaction.
    """
    user.no_show_count = (user.no_show_count or 0) + 1
    if user.no_show_count >= settings.NO_SHOW_THRESHOLD and not user.is_blacklisted:
        user.is_blacklisted = True
        user.blacklist_start_time = now or local_now()
        logger.info("User %s blacklisted after %d no-shows.", user.username, user.no_show_count)
        return True
    return False


def _clear(user: User) -> None:
    user.is_blacklisted = False
    user.no_show_count = None
    user.blacklist_start_time = None


def _get_user(db: Session, user_id: UUID) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise ResourceNotFoundError("User", user_id)
    return user


def add_to_blacklist(db: Session, user_id: UUID, now: Optional[datetime] = None) -> User:
    user = _get_user(db, user_id)
    if user.is_blacklisted:
        raise BusinessRuleError("User is already blacklisted")
    user.is_blacklisted = True
    user.blacklist_start_time = now or local_now()
    db.commit()
    db.refresh(user)
    return user


def remove_from_blacklist(db: Session, user_id: UUID) -> User:
    user = _get_user(db, user_id)
    _clear(user)
    db.commit()
    db.refresh(user)
    return user


def list_blacklisted(db: Session, now: Optional[datetime] = None) -> List[BlacklistEntry]:
    now = now or local_now()
    users = (
        db.query(User)
        .filter(User.is_blacklisted == True)  # noqa: E712
        .order_by(User.blacklist_start_time.desc())
        .all()
    )
    return [
        BlacklistEntry(
            user_id=u.id,
            username=u.username,
            blacklist_time=u.blacklist_start_time,
            remaining_time=remaining_time_ms(u, now),
            reason=BLACKLIST_REASON,
        )
        for u in users
    ]


def blacklist_status(db: Session, user_id: UUID, now: Optional[datetime] = None) -> BlacklistStatus:
    user = _get_user(db, user_id)
    return BlacklistStatus(
        user_id=user.id,
        is_blacklisted=bool(user.is_blacklisted),
        no_show_count=user.no_show_count or 0,
        blacklist_start_time=user.blacklist_start_time,
        blacklist_end_time=blacklist_end_time(user) if user.is_blacklisted else None,
        remaining_time=remaining_time_ms(user, now),
    )


def release_expired_blacklists(db: Session, now: Optional[datetime] = None) -> int:
    """
    Lift every blacklist whose fixed duration has elapsed.

    Users blacklisted without a start time are left alone; only an admin can
    release them. Returns the number of users released.
    """
    now = now or local_now()
    cutoff = now - blacklist_duration()
    expired = (
        db.query(User)
        .filter(
            User.is_blacklisted == True,  # noqa: E712
            User.blacklist_start_time.isnot(None),
            User.blacklist_start_time < cutoff,
        )
        .all()
    )
    if not expired:
        return 0

    for user in expired:
        _clear(user)
    db.commit()
    return len(expired)
