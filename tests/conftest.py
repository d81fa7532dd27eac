"""Pytest configuration for test isolation.

Session state is persisted through SQLAlchemy to a database chosen from the
environment (``FINFLOW_DATABASE_URL``, then ``DATABASE_URL``, then a SQLite
file under ``./.finflow``). Tests that load or save a session would otherwise
share that file, so every test gets its own SQLite database under ``tmp_path``
and cached engines are disposed afterwards.
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

# Make sure the workspace `packages/` dir is on sys.path so `finflow` is importable
_ROOT = Path(__file__).resolve().parents[1]
_PKG_DIR = _ROOT / "packages"
if str(_PKG_DIR) not in sys.path:
    sys.path.insert(0, str(_PKG_DIR))

from finflow.db.client import dispose_engines  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_database(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[str]:
    """Point the store at a per-test SQLite file and drop engines afterwards."""

    url = f"sqlite+pysqlite:///{tmp_path / 'finflow.db'}"
    monkeypatch.setenv("FINFLOW_DATABASE_URL", url)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("FINFLOW_INSIGHTS_MODEL", raising=False)
    yield url
    dispose_engines()


@pytest.fixture
def database_url(_isolate_database: str) -> str:
    return _isolate_database
