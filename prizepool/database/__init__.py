# prizepool/database/__init__.py
from __future__ import annotations

from .base import Base
from .session import Database

__all__ = ["Base", "Database"]
