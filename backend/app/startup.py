"""
Application startup validation and initialization.

This module performs startup checks and builds the process-wide
availability cache and allocation lock manager.
"""

import logging
import sys
from typing import List, Tuple

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
import sqlalchemy as sa

from core.config import get_settings
from core.database import engine, Base
from core.locks import AllocationLockManager
from modules.bookings.services import AvailabilityCache

logger = logging.getLogger(__name__)

REQUIRED_TABLES = [
    "venues",
    "tables",
    "join_groups",
    "booking_windows",
    "booking_priorities",
    "bookings",
    "booking_table_assignments",
    "slot_holds",
    "blocks",
]


class StartupValidator:
    """Validates application startup requirements"""

    def __init__(self):
        self.settings = get_settings()
        self.errors: List[str] = []
        self.warnings: List[str] = []

    def check_database_connection(self) -> bool:
        """Check database connectivity"""
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1")).fetchone()
            logger.info("Database connection successful")
            return True
        except SQLAlchemyError as e:
            self.errors.append(f"Database connection failed: {str(e)}")
            return False

    def check_required_tables(self) -> bool:
        """Create missing tables and report what had to be created"""
        try:
            existing_tables = set(sa.inspect(engine).get_table_names())
            missing_tables = [t for t in REQUIRED_TABLES if t not in existing_tables]
            Base.metadata.create_all(bind=engine)
            if missing_tables:
                self.warnings.append(f"Created missing tables: {', '.join(missing_tables)}")
            return True
        except SQLAlchemyError as e:
            self.errors.append(f"Could not prepare database tables: {str(e)}")
            return False

    def check_booking_defaults(self) -> bool:
        if self.settings.max_suggested_times <= 0:
            self.warnings.append("max_suggested_times is not positive; no alternatives will be offered")
        if not self.settings.redis_enabled and self.settings.is_production:
            self.warnings.append(
                "Redis not configured - allocation locks only serialize within one process"
            )
        return True

    def validate_all(self) -> Tuple[bool, List[str], List[str]]:
        """Run all validation checks"""
        checks = [
            ("Database Connection", self.check_database_connection),
            ("Database Tables", self.check_required_tables),
            ("Booking Defaults", self.check_booking_defaults),
        ]

        all_passed = True
        for check_name, check_func in checks:
            logger.info(f"Running check: {check_name}")
            if not check_func():
                all_passed = False

        return all_passed, self.errors, self.warnings


def run_startup_checks():
    """Run all startup validation checks"""
    settings = get_settings()
    logger.info("=" * 60)
    logger.info("Starting booking backend")
    logger.info(f"Environment: {settings.environment}")
    logger.info("=" * 60)

    validator = StartupValidator()
    passed, errors, warnings = validator.validate_all()

    for warning in warnings:
        logger.warning(f"  {warning}")
    for error in errors:
        logger.error(f"  {error}")

    if not passed and settings.is_production:
        logger.error("Cannot start in production with errors!")
        sys.exit(1)
    elif not passed:
        logger.warning("Starting in development mode despite errors")
    else:
        logger.info("All startup checks passed")

    return passed, warnings


async def init_app_state(app) -> None:
    """Build the shared cache and lock manager on ``app.state``"""
    settings = get_settings()
    app.state.availability_cache = AvailabilityCache(settings)
    app.state.lock_manager = AllocationLockManager(
        redis_url=settings.redis_url,
        timeout_seconds=settings.allocation_lock_timeout_seconds,
    )
    await app.state.lock_manager.initialize()


async def close_app_state(app) -> None:
    lock_manager = getattr(app.state, "lock_manager", None)
    if lock_manager is not None:
        await lock_manager.close()
    cache = getattr(app.state, "availability_cache", None)
    if cache is not None:
        await cache.clear()


def configure_startup_logging():
    """Configure logging for startup"""
    logging.basicConfig(
        level=getattr(logging, get_settings().log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
