import logging
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import declarative_base, sessionmaker, Session

from app.config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Naive UTC timestamp; SQLite drops tzinfo so every stored value is naive."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def build_engine(database_url: str, **kwargs) -> Engine:
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(
        database_url,
        connect_args=connect_args,
        pool_pre_ping=True,
        future=True,
        echo=settings.database_echo,
        **kwargs,
    )
    if engine.dialect.name == "sqlite":
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
    return engine


engine = build_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, bind=engine, future=True, expire_on_commit=False)


def init_db(bind: Engine = None) -> None:
    # Registers every mapped table on Base.metadata
    import app.database.registry  # noqa: F401
    Base.metadata.create_all(bind or engine)


def get_db() -> Iterator[Session]:
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@contextmanager
def transaction(session: Session) -> Iterator[Session]:
    """Commit everything done inside the block, or roll all of it back.

    Authorization checks, the primary write and its side effects all run in
    the same block so none of them can be observed without the others.
    """
    from app.core.errors import Conflict, ValidationError

    try:
        yield session
        session.commit()
    except IntegrityError as e:
        session.rollback()
        message = str(e.orig).lower()
        logger.warning(f"Integrity error: {e.orig}")
        if "unique" in message or "duplicate" in message:
            raise Conflict("A record with these values already exists")
        raise ValidationError("Invalid reference or value")
    except Exception:
        session.rollback()
        raise
