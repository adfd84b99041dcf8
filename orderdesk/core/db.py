from tortoise import Tortoise
from orderdesk.core.config import DB_URL
import logging

log = logging.getLogger(__name__)

# Define all models modules for the ORM
MODELS_MODULES = [
    "orderdesk.models.order",
    "orderdesk.models.notification",
]

async def init_db(db_url: str = DB_URL, generate_schemas: bool = True):
    """Initializes the Tortoise ORM connection and generates schemas."""
    try:
        await Tortoise.init(
            db_url=db_url,
            modules={"models": MODELS_MODULES},
        )
        # Create missing tables; safe to run on every start
        if generate_schemas:
            await Tortoise.generate_schemas(safe=True)
        log.info("Database connection established and schemas generated.")
    except Exception:
        log.critical("Could not connect to database at %s", db_url, exc_info=True)
        # Re-raise to prevent the application from starting without a database
        raise

async def close_db():
    """Closes all database connections."""
    await Tortoise.close_connections()
    log.info("Database connections closed.")
