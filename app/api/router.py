from fastapi import APIRouter

from app.routers import (
    admin,
    bookings,
    drivers,
    messages,
    notifications,
    quotes,
    reviews,
    users,
    vehicles,
)

api_router = APIRouter()

api_router.include_router(bookings.router, prefix="/bookings", tags=["Bookings"])
api_router.include_router(quotes.router, prefix="/quotes", tags=["Quotes"])
api_router.include_router(admin.router, prefix="/admin", tags=["Admin"])
api_router.include_router(messages.router, prefix="/messages", tags=["Messages"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
api_router.include_router(reviews.router, prefix="/reviews", tags=["Reviews"])
api_router.include_router(users.router, prefix="/users", tags=["Users"])
api_router.include_router(drivers.router, prefix="/drivers", tags=["Drivers"])
api_router.include_router(vehicles.router, prefix="/vehicles", tags=["Vehicles"])
