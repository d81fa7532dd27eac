"""Upload dispatch: pick the extractor for a file, import it, apply rules.

Format selection
----------------
1. ``.xlsx``/``.xlsm`` files are spreadsheets (Format C).
2. A filename containing ``revolut`` is Format A.
3. A filename containing ``millennium``, or text containing ``;``, is Format B.
4. Anything else is tried as Format A.

An import that yields no transactions is reported as an unrecognized or empty
file. Read/decode failures are reported with a short message; the underlying
exception is logged, never shown.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
from os import PathLike
from pathlib import Path

from ..logging_setup import get_logger
from ..models import AutoRule, Source, Transaction
from ..normalizers import CSVNormalizer, normalize_rows
from ..rules import classify_all
from .readers import (
    FileReadError,
    decode_text,
    is_spreadsheet_name,
    read_bytes,
    read_spreadsheet_rows,
)

UNRECOGNIZED_MESSAGE = "Unrecognized or empty file."

_logger = get_logger("finflow.ingest.upload")


@dataclass(frozen=True, slots=True)
class UploadResult:
    success: bool
    message: str
    transactions: tuple[Transaction, ...] = ()
    source: Source | None = None


def detect_format(filename: str, text: str = "") -> Source:
    name = filename.lower()
    if is_spreadsheet_name(name):
        return Source.XLSX
    if "revolut" in name:
        return Source.REVOLUT
    if "millennium" in name or ";" in text:
        return Source.MILLENNIUM
    return Source.REVOLUT


def parse_bytes(data: bytes, *, filename: str) -> tuple[Source, list[Transaction]]:
    """Decode ``data`` and run the matching extractor + normalizer."""

    if is_spreadsheet_name(filename):
        return Source.XLSX, normalize_rows(read_spreadsheet_rows(data))
    text = decode_text(data)
    source = detect_format(filename, text)
    return source, CSVNormalizer.normalize(provider=source.value, text=text)


async def import_file_async(
    path: str | PathLike[str],
    rules: Sequence[AutoRule],
    *,
    filename: str | None = None,
) -> UploadResult:
    """Read, parse and classify one file.

    ``filename`` overrides the name used for format sniffing (useful when the
    bytes were saved under a temporary name).
    """

    p = Path(path)
    name = filename or p.name
    try:
        data = await read_bytes(p)
        source, parsed = parse_bytes(data, filename=name)
    except FileReadError as exc:
        _logger.warning("upload: read failed file=%s error=%s", name, exc, exc_info=True)
        return UploadResult(success=False, message=f"Could not read file: {exc}")

    if not parsed:
        _logger.info("upload: no transactions file=%s source=%s", name, source)
        return UploadResult(success=False, message=UNRECOGNIZED_MESSAGE, source=source)

    enriched = classify_all(parsed, rules)
    _logger.info("upload: file=%s source=%s imported=%d", name, source, len(enriched))
    return UploadResult(
        success=True,
        message=f"{len(enriched)} transactions imported successfully!",
        transactions=tuple(enriched),
        source=source,
    )


def import_file(
    path: str | PathLike[str],
    rules: Sequence[AutoRule],
    *,
    filename: str | None = None,
) -> UploadResult:
    """Blocking wrapper around :func:`import_file_async`."""

    return asyncio.run(import_file_async(path, rules, filename=filename))


__all__ = [
    "UNRECOGNIZED_MESSAGE",
    "UploadResult",
    "detect_format",
    "import_file",
    "import_file_async",
    "parse_bytes",
]
