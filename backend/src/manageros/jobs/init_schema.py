"""Create database tables from the SQLAlchemy models.

Run via: python -m manageros.jobs.init_schema
"""

import asyncio
import os

import structlog
from sqlalchemy.ext.asyncio import create_async_engine

from manageros.models import BaseModel

logger = structlog.get_logger()


def async_url(database_url: str) -> str:
    """Point a plain postgres URL at the asyncpg driver."""
    for prefix in ("postgresql://", "postgres://"):
        if database_url.startswith(prefix):
            return "postgresql+asyncpg://" + database_url[len(prefix) :]
    return database_url


async def main() -> None:
    """Create any missing tables."""
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        logger.error("DATABASE_URL not set")
        return

    engine = create_async_engine(async_url(database_url))
    try:
        async with engine.begin() as conn:
            await conn.run_sync(BaseModel.metadata.create_all)
        logger.info("schema_created", tables=sorted(BaseModel.metadata.tables))
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
