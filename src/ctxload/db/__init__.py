"""ctxload database layer."""

from ctxload.db.connection import Database, open_connection
from ctxload.db.migrations import MIGRATIONS, run_migrations, schema_version
from ctxload.db.repository import Repository
from ctxload.db.schema import CURRENT_VERSION, ensure_store, initialize

__all__ = [
    "CURRENT_VERSION",
    "Database",
    "MIGRATIONS",
    "Repository",
    "ensure_store",
    "initialize",
    "open_connection",
    "run_migrations",
    "schema_version",
]
