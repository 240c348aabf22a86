from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes import availability, bookings
from app.core.exceptions import BookingEngineError

# ⭐ Import logging system
from app.core.logging_config import get_logger

logger = get_logger()

app = FastAPI(
    title="Driving School Booking API",
    version="1.0.0",
    description="Lesson booking, availability resolution, conflict checks and package pricing"
)


# ⭐ Request Logging Middleware
@app.middleware("http")
async def log_requests(request, call_next):
    logger.info(f"REQUEST: {request.method} {request.url}")

    try:
        response = await call_next(request)
        logger.info(f"RESPONSE: {response.status_code} {request.url}")
        return response

    except Exception as e:
        logger.error(f"ERROR: {request.url} -> {str(e)}")
        raise e


# ⭐ Domain errors → JSON
@app.exception_handler(BookingEngineError)
async def booking_engine_error_handler(request: Request, exc: BookingEngineError):
    logger.warning(f"REJECTED: {request.method} {request.url} -> {exc.code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_dict()})


# ⭐ CORS (important for frontend)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],   # Can restrict later for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -------- ROUTERS REGISTER ORDER MATTERS --------
app.include_router(bookings.router)
app.include_router(availability.router)


@app.get("/", tags=["Root"])
def root():
    return {"message": "Backend running successfully"}
