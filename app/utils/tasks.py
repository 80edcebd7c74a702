from datetime import datetime, timedelta
from typing import Dict, Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.reservation import Reservation, ReservationStatus
from app.services.blacklist import increment_no_show_count, release_expired_blacklists
from app.utils.clock import local_now

__all__ = [
    "transition_reservation_statuses",
    "release_expired_blacklists",
    "purge_deleted_reservations",
]


def transition_reservation_statuses(db: Session, now: Optional[datetime] = None) -> Dict[str, int]:
    """
    Close out reservations whose end time has passed.

    A reservation is finished when:
      - date  < today                              (entire day is gone), or
      - date == today  AND  end_time <= now.time  (ended earlier today)

    PENDING becomes NO_SHOW and counts against the owner's no-show tally;
    CHECKED_IN becomes COMPLETED. Rows already moved on no longer match, so
    re-running is a no-op.
    """
    now = now or local_now()
    today = now.date()
    current_time = now.time()

    finished = (
        db.query(Reservation)
        .filter(
            Reservation.is_deleted == False,  # noqa: E712
            Reservation.status.in_([ReservationStatus.PENDING, ReservationStatus.CHECKED_IN]),
            or_(
                Reservation.date < today,
                and_(
                    Reservation.date == today,
                    Reservation.end_time <= current_time,
                ),
            ),
        )
        .all()
    )

    counts = {"no_show": 0, "completed": 0, "blacklisted": 0}
    if not finished:
        return counts

    for reservation in finished:
        if reservation.status == ReservationStatus.PENDING:
            reservation.status = ReservationStatus.NO_SHOW
            counts["no_show"] += 1
            if increment_no_show_count(reservation.user, now):
                counts["blacklisted"] += 1
        else:
            reservation.status = ReservationStatus.COMPLETED
            counts["completed"] += 1

    db.commit()
    return counts


def purge_deleted_reservations(db: Session, now: Optional[datetime] = None) -> int:
    """Hard-delete soft-deleted reservations older than the retention window."""
    cutoff = (now or local_now()).date() - timedelta(days=settings.PURGE_RETENTION_DAYS)
    count = (
        db.query(Reservation)
        .filter(
            Reservation.is_deleted == True,  # noqa: E712
            Reservation.deleted_at < cutoff,
        )
        .delete(synchronize_session="fetch")
    )
    db.commit()
    return count
