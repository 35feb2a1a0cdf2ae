import contextlib
import logging
from sqlalchemy.engine import Engine
from sqlalchemy.pool import QueuePool, StaticPool
from sqlmodel import SQLModel, create_engine, Session
from core.config import settings
import models  # noqa: F401  registers the catalog tables on SQLModel.metadata

logger = logging.getLogger(__name__)


def build_engine(db_url: str, pool_size: int = 5, max_overflow: int = 10) -> Engine:
    if db_url.startswith("sqlite"):
        # SQLite connections are shared with FastAPI's threadpool
        connect_args = {"check_same_thread": False}
        if ":memory:" in db_url or db_url in ("sqlite://", "sqlite:///"):
            # One shared connection, otherwise every checkout sees an empty database
            return create_engine(db_url, connect_args=connect_args, poolclass=StaticPool)
        return create_engine(db_url, connect_args=connect_args)

    return create_engine(
        db_url,
        poolclass=QueuePool,
        pool_size=pool_size,  # Number of connections to keep open
        max_overflow=max_overflow,  # Maximum number of connections to create beyond pool_size
        pool_timeout=30,  # Timeout in seconds for getting a connection from the pool
        pool_recycle=3600,  # Recycle connections after 1 hour
        pool_pre_ping=True  # Verify connections before using them from the pool
    )


DB_URL = settings.DATABASE_URL
write_engine = build_engine(DB_URL)

# SQLite has a single writer anyway; only split reads off on a real server
if DB_URL.startswith("sqlite"):
    read_engine = write_engine
else:
    read_engine = build_engine(DB_URL, pool_size=10, max_overflow=20)

engine = write_engine


def create_db_and_tables(bind: Engine = None):
    # Only create tables using the write engine
    SQLModel.metadata.create_all(bind or write_engine)
    logger.info("Catalog tables ready on %s", (bind or write_engine).url.render_as_string(hide_password=True))


# Session for write operations
def get_write_session():
    with Session(write_engine) as session:
        yield session


# Session for read operations
def get_read_session():
    with Session(read_engine) as session:
        yield session


# Unit of work for code outside a request: startup seeding and scripts
@contextlib.contextmanager
def get_write_session_context(bind: Engine = None):
    session = Session(bind or write_engine)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
