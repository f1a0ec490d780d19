"""Initialize database tables."""
import logging

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel

# Imported for their table metadata
from furnacelog.models.home import Home  # noqa: F401
from furnacelog.models.schedule import RecurringSeries, ScheduledOccurrence  # noqa: F401
from furnacelog.models.maintenance_log import MaintenanceLog  # noqa: F401
from furnacelog.models.weather import WeatherObservation  # noqa: F401

logger = logging.getLogger(__name__)


def init_db(target: Engine = None):
    """Create all tables in the database."""
    if target is None:
        from furnacelog.db.config import engine as target

    logger.info("Creating all tables...")
    SQLModel.metadata.create_all(target)
    logger.info("Tables created successfully.")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
