"""Database readiness probing.

The harness never manages schemas or sessions; it only proves that a
PostgreSQL dependency accepts connections before a test relies on it.
Pools are SQLAlchemy async engines over the asyncpg driver.
"""

from src.infrastructure.database.readiness import (
    build_pool_url,
    create_pg_pool,
    effective_deadline,
)

__all__ = [
    "build_pool_url",
    "create_pg_pool",
    "effective_deadline",
]
