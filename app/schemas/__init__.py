from app.schemas.common import PaginatedResponse, MessageResponse, CountResponse
from app.schemas.user import User, UserCreate, LoginRequest, LoginResponse, BlacklistEntry, BlacklistStatus
from app.schemas.admin import Admin, AdminCreate, AdminLoginResponse
from app.schemas.study_room import StudyRoom, StudyRoomCreate, StudyRoomUpdate, AvailableSlots
from app.schemas.seat import Seat, SeatCreate, SeatBatchCreate, SeatRealTimeStatus, SeatTimeSlotStatus
from app.schemas.reservation import Reservation, ReservationCreate, QuickReserveRequest, AdminReservation
from app.schemas.feedback import Feedback, FeedbackCreate, FeedbackProcess
