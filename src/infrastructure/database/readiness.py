"""Bounded-time readiness probing for a PostgreSQL dependency.

The prober builds an async SQLAlchemy engine (a connection pool over the
asyncpg driver) pointed at the loopback address and immediately proves it
live with a single ``SELECT 1``. Only a pool that answered the ping is ever
handed back; its disposal is registered with the caller's cleanup scope so
the pool is released when the test ends, whatever the outcome.

Two failure categories are kept apart so tests can assert on them:

- **PoolConstructionError**: the engine could not be built (bad parameters).
  Nothing touches the network and no ping is attempted.
- **PoolConnectError**: the engine was built but the ping timed out, was
  refused, or failed authentication. The dependency is not ready.

The ping is bounded by the sooner of the caller's ambient deadline and a
short fixed timeout, so a database that never comes up costs at most about
a second of test time.
"""

import asyncio
import time

import asyncpg
from loguru import logger
from sqlalchemy import URL, text
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from src.core.config import Settings, get_settings
from src.core.constants import MAX_TCP_PORT, POOL_DRIVERNAME
from src.core.exceptions import PoolConnectError, PoolConstructionError
from src.core.types import LoopDeadline
from src.testing.scope import CleanupScope

# Everything the ping can fail with once the pool exists
PING_ERRORS = (
    TimeoutError,
    OSError,
    SQLAlchemyError,
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
)


def effective_deadline(
    now: float, timeout: float, ambient: LoopDeadline | None
) -> LoopDeadline:
    """Compute the deadline for a bounded operation.

    Args:
        now: Current loop-clock time.
        timeout: Fixed upper bound for the operation, in seconds.
        ambient: The caller's own deadline, if it has one.

    Returns:
        LoopDeadline: Whichever of ``now + timeout`` and ``ambient`` comes first.
    """
    bounded = now + timeout
    if ambient is None:
        return bounded
    return min(bounded, ambient)


def build_pool_url(
    username: str, password: str, port: int, host: str | None = None
) -> URL:
    """Build the connection URL for the probed pool.

    Credentials are kept as URL components rather than interpolated into a
    string so that reserved characters in passwords survive.

    Args:
        username: Database role.
        password: Password for the role.
        port: Port the database listens on.
        host: Host override; defaults to the configured loopback host.

    Returns:
        URL: A ``postgresql+asyncpg`` URL without a database name.

    Raises:
        ValueError: If the port is outside the TCP port range.
    """
    if isinstance(port, int) and not 0 < port <= MAX_TCP_PORT:
        msg = f"port must be between 1 and {MAX_TCP_PORT}, got {port}"
        raise ValueError(msg)
    return URL.create(
        drivername=POOL_DRIVERNAME,
        username=username,
        password=password,
        host=host or get_settings().readiness_config.host,
        port=port,
    )


async def _ping(engine: AsyncEngine) -> None:
    async with engine.connect() as conn:
        result = await conn.execute(text("SELECT 1"))
        _ = result.scalar()


async def create_pg_pool(
    scope: CleanupScope,
    username: str,
    password: str,
    port: int,
    *,
    deadline: LoopDeadline | None = None,
    settings: Settings | None = None,
) -> AsyncEngine:
    """Create a connection pool and prove it live with a ping.

    Args:
        scope: Cleanup scope of the calling test; receives the pool disposal.
        username: Database role.
        password: Password for the role.
        port: Port the database listens on (loopback host).
        deadline: Optional ambient deadline in loop-clock time. The ping is
            abandoned at this time or after the fixed ping timeout, whichever
            comes first.
        settings: Settings override; defaults to the cached settings.

    Returns:
        AsyncEngine: A pool that answered the ping.

    Raises:
        PoolConstructionError: If the pool cannot be constructed.
        PoolConnectError: If the pool did not connect in time.

    Example:
        engine = await create_pg_pool(scope, "postgres", "secret", 5432)
        async with engine.connect() as conn:
            await conn.execute(text("CREATE EXTENSION IF NOT EXISTS columnar"))
    """
    settings = settings or get_settings()
    readiness = settings.readiness_config

    loop = asyncio.get_running_loop()
    when = effective_deadline(loop.time(), readiness.ping_timeout_seconds, deadline)

    try:
        url = build_pool_url(username, password, port, host=readiness.host)
        engine = create_async_engine(
            url,
            pool_size=readiness.pool_size,
            max_overflow=readiness.max_overflow,
        )
    except (ArgumentError, TypeError, ValueError) as e:
        raise PoolConstructionError(
            f"failed to construct new pool: {e}",
            context={"port": port},
            cause=e,
        ) from e

    started = time.perf_counter()
    try:
        async with asyncio.timeout_at(when):
            await _ping(engine)
    except PING_ERRORS as e:
        logger.debug(
            "Readiness ping failed: {}: {}",
            type(e).__name__,
            e,
            port=port,
        )
        raise PoolConnectError(
            f"pool did not connect: {type(e).__name__}: {e}",
            context={"port": port},
            cause=e,
        ) from e

    scope.add_cleanup(engine.dispose)

    logger.debug(
        "Readiness ping succeeded",
        port=port,
        duration_ms=round((time.perf_counter() - started) * 1000, 2),
    )
    return engine
