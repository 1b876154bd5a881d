# prizepool/database/models/key_value.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from prizepool.database.base import Base


class KeyValueEntry(Base):
    """
    Opaque blob storage, one row per logical key (spin state, item config,
    staff catalog). `revision` is bumped on every write and backs the
    compare-and-swap used by the spin-state engine.
    """
    __tablename__ = "app_kv"

    key: Mapped[str] = mapped_column(String(128), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    revision: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        server_default=func.now(),
        onupdate=func.now(),
    )
