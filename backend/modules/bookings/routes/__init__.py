from .availability_routes import router as availability_router
from .booking_routes import router as booking_router
from .hold_routes import router as hold_router
from .block_routes import router as block_router

__all__ = ["availability_router", "booking_router", "hold_router", "block_router"]
