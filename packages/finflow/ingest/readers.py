"""File reading for imports: bytes → decoded text or spreadsheet row mappings.

Reading the file is the only asynchronous step of an import
(:func:`read_bytes` runs the blocking read in a worker thread). Decoding is
done up front and in full, so extraction only ever sees a loaded buffer. Any
failure here is a whole-file failure and surfaces as :class:`FileReadError`.
"""

from __future__ import annotations

import asyncio
import io
from os import PathLike
from pathlib import Path
from typing import Any

from openpyxl import load_workbook

SPREADSHEET_SUFFIXES: frozenset[str] = frozenset({".xlsx", ".xlsm"})


class FileReadError(Exception):
    """The file could not be read or decoded; nothing was imported."""


async def read_bytes(path: str | PathLike[str]) -> bytes:
    p = Path(path)
    try:
        return await asyncio.to_thread(p.read_bytes)
    except OSError as exc:
        raise FileReadError(f"cannot open {p.name}: {exc.strerror or exc}") from exc


def decode_text(data: bytes) -> str:
    """Decode UTF-8 export text, tolerating a byte-order mark."""

    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise FileReadError("file is not valid UTF-8 text") from exc


def read_spreadsheet_rows(data: bytes) -> list[dict[str, Any]]:
    """Return the first worksheet as ``{header: value}`` rows.

    The first non-empty row is the header; columns without a header are left
    out and fully empty rows are skipped. Cell values keep their spreadsheet
    types (numbers, datetimes, strings).
    """

    # openpyxl surfaces corrupt archives as many unrelated exception types
    # (BadZipFile, KeyError, XML ParseError, ValueError, TypeError).
    try:
        wb = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except Exception as exc:
        raise FileReadError("file is not a readable .xlsx workbook") from exc

    try:
        if not wb.worksheets:
            return []
        ws = wb.worksheets[0]
        headers: list[str | None] | None = None
        rows: list[dict[str, Any]] = []
        for values in ws.iter_rows(values_only=True):
            if all(v is None or (isinstance(v, str) and not v.strip()) for v in values):
                continue
            if headers is None:
                headers = [str(v).strip() if v is not None else None for v in values]
                continue
            rows.append({h: v for h, v in zip(headers, values, strict=False) if h})
        return rows
    except Exception as exc:
        raise FileReadError("workbook contents could not be read") from exc
    finally:
        wb.close()


def is_spreadsheet_name(filename: str) -> bool:
    return Path(filename).suffix.lower() in SPREADSHEET_SUFFIXES


__all__ = [
    "FileReadError",
    "SPREADSHEET_SUFFIXES",
    "decode_text",
    "is_spreadsheet_name",
    "read_bytes",
    "read_spreadsheet_rows",
]
