"""Plugin download, extraction, and pack reconciliation."""

from .archive import find_wrapping_dir, install_archive, safe_join
from .fetcher import fetch_archive
from .naming import archive_url, dir_name
from .reconciler import Reconciler, SyncPlan, SyncResult
from .scanner import installed_names, list_children

__all__ = [
    "archive_url",
    "dir_name",
    "fetch_archive",
    "find_wrapping_dir",
    "install_archive",
    "installed_names",
    "list_children",
    "Reconciler",
    "safe_join",
    "SyncPlan",
    "SyncResult",
]
