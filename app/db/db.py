from sqlalchemy import inspect

from .models import Base
from .session import engine

from app.utils.logging import get_logger

logger = get_logger()


def init_db():
    """Create any missing tables; existing tables are left untouched."""
    existing = set(inspect(engine).get_table_names())
    missing = [t for t in Base.metadata.sorted_tables if t.name not in existing]
    if not missing:
        logger.info("Database schema up to date")
        return

    Base.metadata.create_all(engine, tables=missing)
    logger.info("Created tables", tables=[t.name for t in missing])


if __name__ == "__main__":
    init_db()
