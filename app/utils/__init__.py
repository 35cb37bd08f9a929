"""
Utility functions for the Drive upload relay.
"""

from .file_helpers import ensure_storage_dir, remove_file, cleanup_old_files

__all__ = [
    "ensure_storage_dir",
    "remove_file",
    "cleanup_old_files"
]
