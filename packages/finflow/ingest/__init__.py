"""File ingestion: reading export files and dispatching them to extractors."""

from .readers import FileReadError
from .upload import (
    UNRECOGNIZED_MESSAGE,
    UploadResult,
    detect_format,
    import_file,
    import_file_async,
)

__all__ = [
    "FileReadError",
    "UNRECOGNIZED_MESSAGE",
    "UploadResult",
    "detect_format",
    "import_file",
    "import_file_async",
]
