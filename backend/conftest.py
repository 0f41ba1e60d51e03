"""
Pytest configuration file for backend testing.
"""
import os
import sys
from pathlib import Path

# Keep the application engine off the on-disk database during tests
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")

# Add the backend directory to Python path so imports work correctly
backend_dir = Path(__file__).parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

# Import all models to register them with SQLAlchemy
from modules.venues import models as venue_models  # noqa: E402,F401
from modules.bookings import models as booking_models  # noqa: E402,F401
