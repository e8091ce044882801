"""API routers."""

from . import backup, database, health

__all__ = ["backup", "database", "health"]
