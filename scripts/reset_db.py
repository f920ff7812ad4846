"""Database reset script.

Drops all tables and recreates them. This deletes all patient data.

Usage:
    python -m scripts.reset_db
"""

import asyncio

from medidoc.core.config import get_settings
from medidoc.core.logging_config import setup_logging
from medidoc.db.session import close_db, drop_all_tables, init_db


async def main() -> None:
    """Reset the database by dropping all tables and reinitializing."""
    settings = get_settings()
    setup_logging(settings)

    try:
        print("Dropping all database tables...")
        await drop_all_tables(settings)
        print("All tables dropped successfully!")

        print("Recreating tables...")
        await init_db(settings)
        print("Database reinitialized successfully!")
    finally:
        await close_db()


if __name__ == "__main__":
    asyncio.run(main())
