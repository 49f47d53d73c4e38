#!/usr/bin/env python3
"""Initialize the database with tables."""

import asyncio

from saas_market.db.base import create_tables


async def init_db() -> None:
    """Create all tables."""
    await create_tables()
    print("Database initialized!")


if __name__ == "__main__":
    asyncio.run(init_db())
