import datetime as dt
import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.orm import declarative_base, sessionmaker

from bandset.config import DATABASE_URL
from bandset.errors import ConflictError, TransientStoreError

logger = logging.getLogger(__name__)

Base = declarative_base()


#############################
# Engine and sessions
#############################


def _enable_sqlite_foreign_keys(dbapi_conn, _record):
    cur = dbapi_conn.cursor()
    cur.execute("PRAGMA foreign_keys = ON")
    cur.close()


def make_engine(url: str):
    """Create an engine for ``url``.  SQLite connections get foreign keys on."""
    is_sqlite = url.startswith("sqlite")
    connect_args = {"check_same_thread": False} if is_sqlite else {}
    engine = create_engine(url, echo=False, future=True, connect_args=connect_args)
    if is_sqlite:
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


engine = make_engine(DATABASE_URL)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db):
    """Commit the work done in the block, rolling back on any failure.

    Store errors are translated: integrity violations become
    :class:`ConflictError`, connection level failures become
    :class:`TransientStoreError`.
    """
    try:
        yield db
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning("Integrity error, transaction rolled back: %s", exc.orig)
        raise ConflictError("Conflicting change, the record already exists") from exc
    except (OperationalError, InterfaceError) as exc:
        db.rollback()
        logger.error("Store failure, transaction rolled back: %s", exc)
        raise TransientStoreError("Database temporarily unavailable, please retry") from exc
    except Exception:
        db.rollback()
        raise


def utcnow() -> dt.datetime:
    """Current UTC time as a naive datetime, the form stored in the database."""
    return dt.datetime.now(dt.timezone.utc).replace(tzinfo=None)


def as_utc(value: dt.datetime | None) -> dt.datetime | None:
    """Normalise an incoming datetime to naive UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(dt.timezone.utc).replace(tzinfo=None)


def init_db(bind=None) -> None:
    """Create tables if they do not already exist.  This function is idempotent."""
    from bandset.db import models  # noqa: F401  (registers the mappers)

    Base.metadata.create_all(bind=bind or engine)
