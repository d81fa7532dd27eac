"""ORM model for the opaque key-value store.

The application persists whole collections as JSON blobs under fixed keys
(see :mod:`finflow.store`); the database never sees individual transactions.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class FfStoreEntry(Base):
    __tablename__ = "ff_store"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )


__all__ = ["Base", "FfStoreEntry"]
