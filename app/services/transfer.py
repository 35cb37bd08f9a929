"""
Progress-observing pass-through stream used for Drive uploads.
"""
import io
import logging
import time
from typing import BinaryIO, Callable, Optional

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


def compute_percentage(bytes_seen: int, total_size: Optional[int]) -> Optional[int]:
    """
    Whole percentage of ``total_size`` covered by ``bytes_seen``.

    Args:
        bytes_seen: Bytes read so far
        total_size: Expected stream length

    Returns:
        floor(bytes_seen / total_size * 100) capped at 100, or None when the
        length is zero or unknown
    """
    if not total_size or total_size <= 0:
        return None
    return min(100, (max(0, bytes_seen) * 100) // total_size)


class ProgressReader:
    """
    Wraps a readable, seekable binary stream and reports read progress.

    Bytes are returned unchanged. Progress is the high-water mark of the
    stream position after each read, so a resumable upload that seeks back to
    resend a chunk never moves the percentage backward. The callback runs at
    most once per ``interval`` seconds, plus once when the stream has been
    read to the end, and only when the percentage changed.
    """

    def __init__(
        self,
        fileobj: BinaryIO,
        total_size: Optional[int],
        callback: Optional[ProgressCallback] = None,
        interval: float = 0.1,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._fileobj = fileobj
        self.total_size = total_size or 0
        self._callback = callback
        self._interval = max(0.0, interval)
        self._clock = clock
        self.bytes_seen = 0
        self.last_reported: Optional[int] = None
        self._last_emit: Optional[float] = None

    @property
    def percentage(self) -> Optional[int]:
        return compute_percentage(self.bytes_seen, self.total_size)

    def read(self, size: int = -1) -> bytes:
        data = self._fileobj.read(size)
        if data:
            self.bytes_seen = max(self.bytes_seen, self._fileobj.tell())
            self._maybe_report()
        return data

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        return self._fileobj.seek(offset, whence)

    def tell(self) -> int:
        return self._fileobj.tell()

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return True

    def close(self) -> None:
        self._fileobj.close()

    @property
    def closed(self) -> bool:
        return self._fileobj.closed

    def __enter__(self) -> "ProgressReader":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def flush_progress(self) -> None:
        """Report the current percentage now, ignoring the throttle."""
        self._maybe_report(force=True)

    def _maybe_report(self, force: bool = False) -> None:
        if self._callback is None:
            return
        percentage = self.percentage
        if percentage is None or percentage == self.last_reported:
            return
        now = self._clock()
        due = self._last_emit is None or now - self._last_emit >= self._interval
        if not (force or due or percentage >= 100):
            return
        self._last_emit = now
        self.last_reported = percentage
        try:
            self._callback(percentage)
        except Exception:
            # A broken observer must not abort the transfer itself
            logger.exception("progress callback failed")
