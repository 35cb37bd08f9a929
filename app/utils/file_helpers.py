"""
File handling utilities.
"""
import logging
import os
import time
from pathlib import Path

logger = logging.getLogger(__name__)


def ensure_storage_dir(directory: str = "uploads") -> str:
    """
    Ensure storage directory exists.

    Args:
        directory: Directory path

    Returns:
        Absolute path to directory
    """
    path = Path(directory)
    path.mkdir(parents=True, exist_ok=True)
    return str(path.absolute())


def remove_file(file_path: str) -> bool:
    """
    Delete a file if it is still on disk.

    Args:
        file_path: Path to file

    Returns:
        True if this call removed the file, False if it was already gone
    """
    try:
        os.remove(file_path)
        return True
    except FileNotFoundError:
        return False
    except OSError as e:
        logger.warning("failed to delete file", extra={"path": file_path, "error": str(e)})
        return False


def cleanup_old_files(directory: str, max_age_hours: int = 24) -> int:
    """
    Clean up old files in directory.

    Temp files left behind by a crash mid-transfer are never picked up
    again, so they are swept at startup.

    Args:
        directory: Directory to clean
        max_age_hours: Maximum age of files in hours

    Returns:
        Number of files removed
    """
    current_time = time.time()
    max_age_seconds = max_age_hours * 3600
    removed_count = 0

    if not os.path.isdir(directory):
        return 0

    for filename in os.listdir(directory):
        file_path = os.path.join(directory, filename)

        if os.path.isfile(file_path):
            file_age = current_time - os.path.getmtime(file_path)

            if file_age > max_age_seconds and remove_file(file_path):
                removed_count += 1

    return removed_count
