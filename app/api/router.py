from fastapi import APIRouter

# Public: accounts
from app.api.public.users import router as users_router

# Public: seats, reservations, feedback
from app.api.public.seats import router as seats_router
from app.api.public.reservations import router as reservations_router
from app.api.public.feedback import router as feedback_router

# Admin
from app.api.admin.study_rooms import router as admin_study_rooms_router
from app.api.admin.admins import router as admins_router
from app.api.admin.reservations import router as admin_reservations_router
from app.api.admin.feedback import router as admin_feedback_router

api_router = APIRouter()

# --- Accounts ---
api_router.include_router(users_router)

# --- Seats & reservations ---
api_router.include_router(seats_router)
api_router.include_router(reservations_router)

# --- Feedback ---
api_router.include_router(feedback_router)

# --- Admin (study rooms first so /admins/study-rooms is not taken by /admins/{admin_id}) ---
api_router.include_router(admin_study_rooms_router)
api_router.include_router(admins_router)
api_router.include_router(admin_reservations_router)
api_router.include_router(admin_feedback_router)
