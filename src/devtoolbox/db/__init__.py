"""devtoolbox database layer."""

from devtoolbox.db.connection import Database
from devtoolbox.db.migrations import MIGRATIONS, run_migrations, schema_version
from devtoolbox.db.repository import Repository

__all__ = [
    "Database",
    "MIGRATIONS",
    "Repository",
    "run_migrations",
    "schema_version",
]
