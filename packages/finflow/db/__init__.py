"""db: SQLAlchemy-backed key-value storage for ``finflow``.

Public exports
--------------
- ``Base`` / ``metadata`` and the ``FfStoreEntry`` model
- Engine/session helpers in ``finflow.db.client``
"""

from __future__ import annotations

from .models import Base, FfStoreEntry

metadata = Base.metadata

__all__ = [
    "Base",
    "FfStoreEntry",
    "metadata",
]
