"""
Script to initialize database: create tables if they don't exist before migrations.
"""
import logging

from blade_api.configuration.config import Base, get_engine
from blade_api.modules.auth.entities import UserEntity  # noqa: F401

logger = logging.getLogger(__name__)


def init_database():
    """Create all tables if they don't exist."""
    engine = get_engine()

    logger.info("Creating tables if they don't exist...")
    Base.metadata.create_all(bind=engine)
    logger.info("Tables created/verified successfully!")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    init_database()
