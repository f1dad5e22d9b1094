"""Reset the TradeCal database — drop all tables and recreate them."""
import asyncio
import sys

from tradecal.db.engine import Database
from tradecal.logging_config import configure_logging


async def reset(database_url: str | None = None) -> None:
    async with Database(url=database_url) as database:
        await database.drop_all()
        await database.create_all()


if __name__ == "__main__":
    configure_logging()
    asyncio.run(reset(sys.argv[1] if len(sys.argv) > 1 else None))
