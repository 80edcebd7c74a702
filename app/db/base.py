from app.db.session import Base
from app.models.user import User
from app.models.admin import Admin
from app.models.study_room import StudyRoom
from app.models.seat import Seat
from app.models.reservation import Reservation
from app.models.feedback import Feedback
