"""Database access: engine and session management.

Repositories live in ``storage.repositories``; they depend on the models,
which in turn import ``Base`` from here.
"""
from .database import Base, Database, get_db, init_db

__all__ = [
    "Base",
    "Database",
    "get_db",
    "init_db",
]
