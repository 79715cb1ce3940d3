"""Create every table for the configured database.

Run with ``python -m marketplace_api.init_db``; use Alembic for managed
schema changes.
"""

from marketplace_api.core.settings import settings
from marketplace_api.db.session import create_tables


def init_db() -> None:
    """Initialize the database by creating all tables."""
    create_tables()


if __name__ == "__main__":
    init_db()
    print(f"Database initialized at {settings.database_url}.")
