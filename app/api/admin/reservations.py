from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status as http_status
from sqlalchemy.orm import Session, joinedload

from app.db.session import get_db
from app.api.deps import get_current_admin
from app.models.admin import Admin
from app.models.reservation import Reservation, ReservationStatus
from app.schemas.common import MessageResponse, PaginatedResponse
from app.schemas.reservation import AdminReservation, StatusAdjust
from app.services import reservations as reservation_service
from app.services.cache import SeatStatusCache, get_cache

router = APIRouter(prefix="/admin/reservations", tags=["Admin - Reservations"])

SORTABLE_FIELDS = {
    "date": Reservation.date,
    "start_time": Reservation.start_time,
    "end_time": Reservation.end_time,
    "created_at": Reservation.created_at,
    "status": Reservation.status,
}


def _order_by(sort: str):
    field, _, direction = sort.partition(",")
    column = SORTABLE_FIELDS.get(field.strip())
    if column is None:
        raise HTTPException(
            status_code=http_status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot sort by {field!r}, expected one of {', '.join(SORTABLE_FIELDS)}",
        )
    if direction.strip().lower() == "asc":
        return column.asc()
    return column.desc()


def _parse_status(value: str) -> ReservationStatus:
    try:
        return ReservationStatus(value)
    except ValueError:
        raise HTTPException(status_code=http_status.HTTP_400_BAD_REQUEST, detail=f"Invalid reservation status {value!r}")


@router.get("", response_model=PaginatedResponse[AdminReservation])
def search_reservations(
    # --- Filters ---
    user_id: Optional[UUID] = Query(None),
    start_date: Optional[date] = Query(None, description="Earliest reservation date (inclusive)"),
    end_date: Optional[date] = Query(None, description="Latest reservation date (inclusive)"),
    status: Optional[str] = Query(None, description="PENDING/CONFIRMED, CHECKED_IN, CANCELLED, NO_SHOW, COMPLETED"),
    seat_id: Optional[UUID] = Query(None),
    study_room_id: Optional[UUID] = Query(None),
    # --- Pagination ---
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    sort: str = Query("date,desc", description="<field>,<asc|desc>"),
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    """
    Search all reservations that have not been soft-deleted, with the user,
    seat and room names filled in.
    """
    query = (
        db.query(Reservation)
        .options(
            joinedload(Reservation.user),
            joinedload(Reservation.seat),
            joinedload(Reservation.study_room),
        )
        .filter(Reservation.is_deleted == False)  # noqa: E712
    )

    if user_id:
        query = query.filter(Reservation.user_id == user_id)
    if start_date:
        query = query.filter(Reservation.date >= start_date)
    if end_date:
        query = query.filter(Reservation.date <= end_date)
    if status:
        query = query.filter(Reservation.status == _parse_status(status))
    if seat_id:
        query = query.filter(Reservation.seat_id == seat_id)
    if study_room_id:
        query = query.filter(Reservation.study_room_id == study_room_id)

    total = query.count()
    rows = (
        query.order_by(_order_by(sort), Reservation.start_time)
        .offset((page - 1) * size)
        .limit(size)
        .all()
    )

    return PaginatedResponse(
        data=[reservation_service.serialize_admin_reservation(r) for r in rows],
        total=total,
        page=page,
        limit=size,
        total_pages=-(-total // size) if total else 0,
    )


@router.delete("/{reservation_id}", response_model=MessageResponse)
def delete_reservation(
    reservation_id: UUID,
    db: Session = Depends(get_db),
    cache: SeatStatusCache = Depends(get_cache),
    current_admin: Admin = Depends(get_current_admin),
):
    reservation_service.soft_delete_reservation(db, reservation_id, current_admin.id, cache=cache)
    return MessageResponse(message="Reservation deleted")


@router.put("/{reservation_id}/adjust-status", response_model=AdminReservation)
def adjust_reservation_status(
    reservation_id: UUID,
    body: StatusAdjust,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin),
):
    reservation = reservation_service.adjust_status(
        db, reservation_id, _parse_status(body.status), current_admin.id
    )
    return reservation_service.serialize_admin_reservation(reservation)
