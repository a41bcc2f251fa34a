"""
Backup export and restore module
"""

from .backup_codec import (
    BackupDocument,
    RestoreResult,
    export_document,
    import_document,
    read_backup,
    write_backup,
)
from .store_file import StoreFile

__all__ = [
    "BackupDocument",
    "RestoreResult",
    "StoreFile",
    "export_document",
    "import_document",
    "read_backup",
    "write_backup",
]
