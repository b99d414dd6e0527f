from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from kitchen_booking.core.errors import BookingError
from kitchen_booking.core.logging_config import setup_logging
from kitchen_booking.database import create_db_and_tables
from kitchen_booking.routers import availability
from kitchen_booking.routers import date_overrides
from kitchen_booking.routers import reservations
from kitchen_booking.routers import weekly_availability

setup_logging()

app = FastAPI(title="Kitchen Booking", version="0.1.0")
app.include_router(availability.router)
app.include_router(weekly_availability.router)
app.include_router(date_overrides.router)
app.include_router(reservations.router)


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.on_event("startup")
def on_startup():
    create_db_and_tables()


@app.get("/")
def root():
    return {"message": "Kitchen booking API", "docs": "/docs", "health": "/health"}


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}
