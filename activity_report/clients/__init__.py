"""Expose constructed client wrappers."""

from .google_drive import GoogleDriveSource
from .local_files import LocalDirectorySource
from .report_source import ReportSource, ReportSourceError
from .resend_mailer import Notifier, ResendNotifier
from .run_lock import FileRunLock
from .sqlite_store import SQLiteStore, StateStoreError

__all__ = [
    "FileRunLock",
    "GoogleDriveSource",
    "LocalDirectorySource",
    "Notifier",
    "ReportSource",
    "ReportSourceError",
    "ResendNotifier",
    "SQLiteStore",
    "StateStoreError",
]
