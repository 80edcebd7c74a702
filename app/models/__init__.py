from app.models.user import User
from app.models.admin import Admin
from app.models.study_room import StudyRoom, StudyRoomStatus
from app.models.seat import Seat, SeatStatus
from app.models.reservation import Reservation, ReservationStatus
from app.models.feedback import Feedback, FeedbackStatus
