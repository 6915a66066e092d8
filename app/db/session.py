import logging
from typing import Generator

from fastapi import HTTPException
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import settings
from app.db.base import Base

logger = logging.getLogger(__name__)


def build_engine(database_url: str) -> Engine:
    if database_url.startswith("sqlite"):
        # writers wait on the file lock instead of failing fast
        return create_engine(database_url, connect_args={"check_same_thread": False, "timeout": 30})
    return create_engine(database_url,
                         connect_args={"connect_timeout": 30},
                         pool_pre_ping=True,
                         pool_recycle=3600,
    )


# Create the SQLAlchemy engine
engine = build_engine(settings.DATABASE_URL)

# Create a configured "Session" class
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind: Engine = engine) -> None:
    """Create the auth tables (used when no external migration runner is configured)."""
    import app.models.auth  # noqa: F401
    import app.models.users  # noqa: F401

    Base.metadata.create_all(bind=bind)


# do not change the order of the code below
# Dependency that can be used in routes to get the session
def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()  # generate a new SessionLocal
    try:
        yield db
    except Exception as e:
        if isinstance(e, HTTPException):
            raise e
        else:
            logger.exception("unhandled error in request session")
            raise HTTPException(status_code=500, detail="Query data error")
    finally:
        db.close()
