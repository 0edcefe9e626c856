"""SQLite persistence for user settings."""

from wavetimer.infrastructure.database.engine import create_db_engine, init_database
from wavetimer.infrastructure.database.schema import metadata, user_settings

__all__ = ["create_db_engine", "init_database", "metadata", "user_settings"]
