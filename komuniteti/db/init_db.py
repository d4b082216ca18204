"""Database initialization utilities."""

import logging
from typing import Optional

from sqlalchemy.engine import Engine

from komuniteti.db.base import Base, import_models

logger = logging.getLogger(__name__)


def init_db(bind: Optional[Engine] = None) -> None:
    """
    Initialize the database by creating all missing tables.

    Note: This is suitable for development/testing only.
    """
    if bind is None:
        from komuniteti.db.session import engine as bind

    import_models()
    Base.metadata.create_all(bind=bind)
    logger.info("Database tables created", extra={"tables": sorted(Base.metadata.tables)})


def drop_db(bind: Optional[Engine] = None) -> None:
    """
    Drop all database tables.

    WARNING: This will delete all data! Only for development/testing purposes.
    """
    if bind is None:
        from komuniteti.db.session import engine as bind

    import_models()
    Base.metadata.drop_all(bind=bind)
    logger.warning("All database tables dropped")
