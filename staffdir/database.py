import logging
import time
from typing import Callable, Union

from fastapi import Request
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.exc import DBAPIError, DisconnectionError
from sqlalchemy.orm import sessionmaker

from .errors import DatabaseUnavailableError
from .repository import UserRepository

logger = logging.getLogger(__name__)

# Pool policy for server databases.
POOL_MAX_OPEN = 10
POOL_MAX_IDLE = 5
POOL_MAX_LIFETIME = 300  # seconds
POOL_MAX_IDLE_TIME = 60  # seconds
# Requests wait for a free connection as long as it takes.
POOL_CHECKOUT_TIMEOUT = None

PING_MAX_ATTEMPTS = 5


def _is_sqlite(url: URL) -> bool:
    return url.get_backend_name() == "sqlite"


def enforce_max_idle_time(
    engine: Engine,
    max_idle_time: float = POOL_MAX_IDLE_TIME,
    clock: Callable[[], float] = time.monotonic,
) -> None:
    """
    Drop pooled connections that sat idle for longer than ``max_idle_time``.

    The pool itself only knows about total lifetime (pool_recycle). Raising
    DisconnectionError from a checkout listener makes the pool discard the
    stale DBAPI connection and hand out a freshly opened one instead.
    """

    @event.listens_for(engine, "checkin")
    def _stamp_checkin(dbapi_connection, connection_record):
        connection_record.info["checked_in_at"] = clock()

    @event.listens_for(engine, "checkout")
    def _expire_idle(dbapi_connection, connection_record, connection_proxy):
        checked_in_at = connection_record.info.pop("checked_in_at", None)
        if checked_in_at is None:
            return
        idle_for = clock() - checked_in_at
        if idle_for > max_idle_time:
            raise DisconnectionError(
                f"connection idle for {idle_for:.0f}s (limit {max_idle_time}s)"
            )


def build_engine(database_url: Union[str, URL]) -> Engine:
    """
    Create the SQLAlchemy engine shared by every request.

    - Server databases (Postgres) get a bounded pool: 10 open, 5 idle,
      5 minute lifetime, 1 minute idle timeout, no limit on waiting for a
      free connection.
    - SQLite (local dev, tests) gets check_same_thread=False and the
      dialect's default pool.
    """
    url = make_url(database_url)

    if _is_sqlite(url):
        return create_engine(url, connect_args={"check_same_thread": False})

    engine = create_engine(
        url,
        pool_size=POOL_MAX_IDLE,
        max_overflow=POOL_MAX_OPEN - POOL_MAX_IDLE,
        pool_recycle=POOL_MAX_LIFETIME,
        pool_timeout=POOL_CHECKOUT_TIMEOUT,
    )
    enforce_max_idle_time(engine)
    return engine


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def wait_for_database(
    engine: Engine,
    max_attempts: int = PING_MAX_ATTEMPTS,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Ping the database until it answers, backing off linearly between tries.

    Waits ``attempt`` seconds after the n-th failure (1s, 2s, 3s, ...).

    Raises:
        DatabaseUnavailableError: if all ``max_attempts`` pings fail.
    """
    safe_url = engine.url.render_as_string(hide_password=True)
    last_error = None

    for attempt in range(1, max_attempts + 1):
        try:
            with engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        except DBAPIError as exc:
            last_error = exc
            logger.warning(
                "Failed to ping database (attempt %d/%d): %s",
                attempt,
                max_attempts,
                exc.orig or exc,
            )
            if attempt < max_attempts:
                sleep(attempt)
        else:
            logger.info("Successfully connected to the database at %s", safe_url)
            return

    logger.critical(
        "Giving up on database at %s after %d attempts", safe_url, max_attempts
    )
    raise DatabaseUnavailableError(
        f"database at {safe_url} unreachable after {max_attempts} attempts"
    ) from last_error


def get_repository(request: Request) -> UserRepository:
    """
    FastAPI dependency:
        def route(repo: UserRepository = Depends(get_repository)):
            ...
    The repository borrows a pooled connection per call, never per request.
    """
    return UserRepository(request.app.state.session_factory)
