"""
Module: garage_kernel.db.engine
Responsibility: SQLAlchemy engine initialization, session factory management,
    and transactional scope utilities.  This is the single point of database
    connection configuration for the entire system.
Architecture position: Kernel > DB.  May import from db/base.py.
    MUST NOT import from services/, selectors/, domain/, or outer layers
    (except for create_tables/drop_tables which import models).

Invariants enforced:
    - PostgreSQL is the production backend: READ COMMITTED isolation with
      explicit row-level locking (FOR UPDATE) on work orders and inventory
      rows where stronger isolation is needed.
    - SQLite is accepted for local runs and the test suite.  Foreign keys are
      switched on per connection and the driver's implicit transaction
      handling is replaced so that SAVEPOINTs behave.
    - Every multi-entity write runs inside session_scope(): commit on success,
      rollback on any exception.  Nothing is half-written.

Failure modes:
    - RuntimeError if get_engine/get_session/get_session_factory called before
      init_engine_from_url().
    - OptimisticLockError propagated from run_with_retry() once attempts are
      exhausted.
"""

import atexit
import time
from collections.abc import Callable, Generator
from contextlib import contextmanager
from typing import TypeVar

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from garage_kernel.exceptions import ConcurrencyError
from garage_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

T = TypeVar("T")

# Module-level engine and session factory
_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None


def _is_sqlite_url(database_url: str) -> bool:
    return database_url.startswith("sqlite")


def _install_sqlite_listeners(engine: Engine) -> None:
    """Enable FK enforcement and explicit BEGIN on SQLite connections."""

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Let SQLAlchemy emit BEGIN itself so SAVEPOINT nests correctly.
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def build_engine(
    database_url: str,
    echo: bool = False,
    pool_size: int = 10,
    max_overflow: int = 10,
    pool_pre_ping: bool = True,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
) -> Engine:
    """
    A configured engine for ``database_url``, not installed as the
    process-wide one.

    PostgreSQL URLs get a QueuePool at READ COMMITTED (the pool settings
    apply only there).  SQLite URLs get foreign keys switched on, and
    ``sqlite://`` shares one in-memory connection through a StaticPool.
    """
    if _is_sqlite_url(database_url):
        in_memory = database_url in ("sqlite://", "sqlite:///:memory:")
        engine = create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool if in_memory else None,
        )
        _install_sqlite_listeners(engine)
        return engine
    return create_engine(
        database_url,
        echo=echo,
        poolclass=QueuePool,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_pre_ping=pool_pre_ping,
        pool_timeout=pool_timeout,
        pool_recycle=pool_recycle,
        isolation_level="READ COMMITTED",
    )


def init_engine_from_url(database_url: str, echo: bool = False, **pool_options) -> Engine:
    """
    Create the process-wide engine and sessionmaker for ``database_url``
    (see build_engine()).  Calling it again replaces the previous engine.
    """
    global _engine, _SessionFactory

    _engine = build_engine(database_url, echo=echo, **pool_options)
    _SessionFactory = sessionmaker(bind=_engine, expire_on_commit=False)

    configure_logging()
    logger.info(
        "engine_initialized",
        extra={"dialect": _engine.dialect.name, "echo": echo},
    )

    return _engine


_NOT_INITIALIZED = "No engine: call init_engine_from_url() before opening sessions."


def get_engine() -> Engine:
    """The engine set up by init_engine_from_url()."""
    if _engine is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    """
    The configured sessionmaker.  Worker threads take one session each
    from it.
    """
    if _SessionFactory is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _SessionFactory


def get_session() -> Session:
    """A new session on the configured engine.  The caller owns it."""
    return get_session_factory()()


@contextmanager
def session_scope(
    session_factory: Callable[[], Session] | None = None,
) -> Generator[Session, None, None]:
    """
    Provide a transactional scope around a series of operations.

    Postconditions: On normal exit, session is committed and closed.
        On exception, session is rolled back and closed.  The exception
        is re-raised to the caller.

    Usage:
        with session_scope() as session:
            WorkOrderService(session, clock).transition_status(wo_id, status)
            # Commits on successful exit, rolls back on exception
    """
    session = (session_factory or get_session)()
    logger.debug("transaction_started")
    try:
        yield session
        session.commit()
        logger.debug("transaction_committed")
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def run_with_retry(
    operation: Callable[[Session], T],
    max_attempts: int = 3,
    session_factory: Callable[[], Session] | None = None,
    backoff_seconds: float = 0.05,
) -> T:
    """
    Run ``operation`` in its own transaction, retrying on write conflicts.

    Each attempt opens a fresh session_scope(), so a retried attempt re-reads
    current state and never sees the rolled-back writes of the failed one.
    Retries happen on ConcurrencyError (version conflict on a work order) and
    on deadlock/serialization OperationalErrors; any other exception
    propagates immediately.

    Raises:
        ConcurrencyError / OperationalError: After ``max_attempts`` failures.
    """
    for attempt in range(1, max_attempts + 1):
        try:
            with session_scope(session_factory) as session:
                return operation(session)
        except (ConcurrencyError, OperationalError) as exc:
            retryable = isinstance(exc, ConcurrencyError) or _is_lock_conflict(exc)
            if not retryable or attempt >= max_attempts:
                raise
            logger.warning(
                "transaction_retry",
                extra={
                    "attempt": attempt,
                    "max_attempts": max_attempts,
                    "reason": type(exc).__name__,
                },
            )
            time.sleep(backoff_seconds * attempt)
    raise RuntimeError("unreachable")  # pragma: no cover


def _is_lock_conflict(exc: OperationalError) -> bool:
    text = str(exc).lower()
    return "deadlock" in text or "could not serialize" in text or "database is locked" in text


def create_tables() -> None:
    """
    Create all tables defined in the models.

    Preconditions: Engine must be initialized via init_engine_from_url().
    Postconditions: All tables exist in the database.
    """
    from garage_kernel.db.base import Base
    import garage_kernel.models  # noqa: F401  (registers every table on Base.metadata)

    engine = get_engine()
    Base.metadata.create_all(engine)
    logger.info(
        "tables_created",
        extra={"table_count": len(Base.metadata.sorted_tables)},
    )


def drop_tables() -> None:
    """Drop every workshop table.  Destroys all data."""
    from garage_kernel.db.base import Base
    import garage_kernel.models  # noqa: F401

    Base.metadata.drop_all(get_engine())


def reset_engine() -> None:
    """Dispose the engine and forget the sessionmaker (test teardown)."""
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()
        _engine = None

    _SessionFactory = None


def _atexit_dispose():
    """Release pooled connections at interpreter exit."""
    if _engine is not None:
        _engine.dispose()


atexit.register(_atexit_dispose)


def is_postgres() -> bool:
    """True when the configured engine talks to PostgreSQL."""
    if _engine is None:
        return False
    return _engine.dialect.name == "postgresql"
