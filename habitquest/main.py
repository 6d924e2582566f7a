"""Application startup and shutdown for the habit quest engine"""
import logging
from habitquest.config import validate_config, LOG_LEVEL, DAY_BOUNDARY_TIMEZONE
from habitquest.db.connection import db
from habitquest.services.container import ServiceContainer, init_container


def configure_logging() -> None:
    """Configure root logging"""
    logging.basicConfig(
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        level=getattr(logging, LOG_LEVEL.upper(), logging.INFO)
    )


logger = logging.getLogger(__name__)


async def startup() -> ServiceContainer:
    """Validate configuration, open the pool and build the service container"""
    logger.info("Validating configuration...")
    validate_config()

    logger.info("Initializing database connection pool...")
    await db.init_pool()

    logger.info(f"Calendar days use time zone {DAY_BOUNDARY_TIMEZONE}")
    return init_container(db, tz=DAY_BOUNDARY_TIMEZONE)


async def shutdown() -> None:
    """Release the connection pool"""
    logger.info("Closing database connection...")
    await db.close_pool()
    logger.info("Shutdown complete")
