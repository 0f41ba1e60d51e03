from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import get_settings
from core.exceptions import register_exception_handlers
from app.startup import (
    close_app_state,
    configure_startup_logging,
    init_app_state,
    run_startup_checks,
)

# Register every model with the metadata before tables are created
from modules.venues import models as venue_models  # noqa: F401
from modules.bookings import models as booking_models  # noqa: F401

# ========== Bookings ==========
from modules.bookings.routes import (
    availability_router, block_router, booking_router, hold_router,
)

configure_startup_logging()

settings = get_settings()

app = FastAPI(
    title="Table Booking API",
    description="""
    Table availability and allocation for restaurant bookings.

    ## Features

    * **Availability** - Bookable dates, single slot checks and slot ranges with join groups
    * **Allocation** - Priority rules, join groups for large parties and best-fit tables
    * **Bookings** - Creation with automatic allocation, status changes and cancellation
    * **Slot Holds** - Short advisory holds while a guest completes a booking
    * **Blocks** - Staff time ranges that close tables or the whole venue
    """,
    version="1.0.0",
)

# Register exception handlers for consistent error responses
register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(availability_router, prefix="/api/v1/availability", tags=["Availability"])
app.include_router(booking_router, prefix="/api/v1/bookings", tags=["Bookings"])
app.include_router(hold_router, prefix="/api/v1/holds", tags=["Slot Holds"])
app.include_router(block_router, prefix="/api/v1/blocks", tags=["Blocks"])


# Startup and shutdown events
@app.on_event("startup")
async def startup_event():
    """Initialize services on application startup"""
    run_startup_checks()
    await init_app_state(app)


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on application shutdown"""
    await close_app_state(app)


@app.get("/")
def read_root():
    return {"message": "Booking backend is running"}


@app.get("/health")
async def health():
    cache = getattr(app.state, "availability_cache", None)
    return {
        "status": "ok",
        "environment": settings.environment,
        "availability_cache": cache.get_stats() if cache is not None else None,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
