from sqlalchemy.orm import declarative_base

from app.core.config import settings

Base = declarative_base()

SCHEMA = settings.DB_SCHEMA


def table_args(*args) -> tuple:
    """__table_args__ for a table in the configured schema (none for sqlite)."""
    return (*args, {"schema": SCHEMA})


def qualified(table: str) -> str:
    """Schema-qualified table name for ForeignKey targets."""
    return f"{SCHEMA}.{table}" if SCHEMA else table
