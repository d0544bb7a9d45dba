"""Database helper utilities for ensuring schema consistency."""
from __future__ import annotations

import sqlite3
from typing import Dict, Iterable, List, Set

from sqlalchemy import event, inspect, text
from sqlalchemy.engine import Engine

from .extensions import db


# Columns added after the first schema, keyed by table.
_ADDITIVE_COLUMNS: Dict[str, List[tuple[str, str]]] = {
    "projects": [
        ("tone", "ALTER TABLE projects ADD COLUMN tone TEXT"),
    ],
    "scenes": [
        ("synopsis", "ALTER TABLE scenes ADD COLUMN synopsis TEXT NOT NULL DEFAULT ''"),
        ("status", "ALTER TABLE scenes ADD COLUMN status VARCHAR(30) NOT NULL DEFAULT 'draft'"),
    ],
}


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def _get_column_names(table_name: str) -> Set[str]:
    inspector = inspect(db.engine)
    return {column["name"] for column in inspector.get_columns(table_name)}


def ensure_database_schema() -> None:
    """Ensure that essential schema updates are applied.

    Runs on every application start. Missing tables are created and the
    columns introduced after the initial release (project tone, scene synopsis
    and scene workflow status) are added to existing databases.
    """

    # Import locally to avoid circular import issues during application setup.
    from . import models

    inspector = inspect(db.engine)
    table_names: Iterable[str] = inspector.get_table_names()

    if "projects" not in table_names:
        db.create_all()
        return

    required_tables = {
        table.name: table
        for table in (
            models.UserProfile.__table__,
            models.Character.__table__,
            models.Place.__table__,
            models.WorldRule.__table__,
            models.Chapter.__table__,
            models.Scene.__table__,
            models.SceneVersion.__table__,
        )
    }

    for table_name, table in required_tables.items():
        if table_name not in table_names:
            table.create(bind=db.engine)

    for table_name, columns in _ADDITIVE_COLUMNS.items():
        if table_name not in table_names:
            continue
        existing = _get_column_names(table_name)
        for column_name, statement in columns:
            if column_name in existing:
                continue
            with db.engine.begin() as connection:
                connection.execute(text(statement))
