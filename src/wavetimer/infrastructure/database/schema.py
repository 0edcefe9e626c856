"""SQLAlchemy Core table definitions for the settings database."""

from __future__ import annotations

from sqlalchemy import Column, MetaData, Table, Text

metadata = MetaData()

# One JSON document per user. Partial writes are merged in Python.
user_settings = Table(
    "user_settings",
    metadata,
    Column("user_key", Text, primary_key=True),
    Column("payload", Text, nullable=False),  # JSON object
    Column("modified", Text, nullable=False),
)
