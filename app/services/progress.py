import logging
import threading
import time
import uuid
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from app.core.config import settings
from app.core.constants import UPLOAD_ID_PREFIX, UPLOAD_ID_SUFFIX_LENGTH
from app.schemas.uploads import UploadRecord

logger = logging.getLogger(__name__)


def generate_upload_id() -> str:
	"""Millisecond timestamp plus a random suffix, so ids minted in the same millisecond differ."""
	millis = time.time_ns() // 1_000_000
	return f"{UPLOAD_ID_PREFIX}{millis}_{uuid.uuid4().hex[:UPLOAD_ID_SUFFIX_LENGTH]}"


class ProgressStore:
	"""In-memory map of upload id to UploadRecord.

	Bounded two ways: terminal records expire ``ttl_seconds`` after their last
	write, and once ``max_entries`` is reached the least recently used terminal
	records are evicted. Records still pending or in progress are never evicted,
	so the task that owns one can always write its outcome.

	Progress callbacks run on the worker thread driving the Drive client, hence
	the lock around every access.
	"""

	def __init__(
		self,
		max_entries: Optional[int] = None,
		ttl_seconds: Optional[float] = None,
		clock: Callable[[], float] = time.monotonic,
	) -> None:
		self.max_entries = max_entries if max_entries is not None else settings.PROGRESS_MAX_ENTRIES
		self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.PROGRESS_TTL_SECONDS
		self._clock = clock
		self._records: "OrderedDict[str, UploadRecord]" = OrderedDict()
		self._touched: Dict[str, float] = {}
		self._lock = threading.Lock()

	def __len__(self) -> int:
		with self._lock:
			return len(self._records)

	def __contains__(self, upload_id: str) -> bool:
		with self._lock:
			return upload_id in self._records

	def create(self, upload_id: str) -> UploadRecord:
		with self._lock:
			if upload_id in self._records:
				raise ValueError(f"Upload {upload_id} already exists")
			self._evict_locked()
			record = UploadRecord(id=upload_id)
			self._records[upload_id] = record
			self._touched[upload_id] = self._clock()
			return record.model_copy(deep=True)

	def update(self, upload_id: str, **fields: Any) -> Optional[UploadRecord]:
		"""Merge ``fields`` into an existing record.

		Unknown ids and records already in a terminal state are left alone.
		Progress is clamped to 0..100 and never moves backward.
		"""
		with self._lock:
			record = self._records.get(upload_id)
			if record is None:
				logger.warning("update for unknown upload", extra={"upload_id": upload_id})
				return None
			if record.is_terminal:
				logger.warning(
					"ignoring update to finished upload",
					extra={"upload_id": upload_id, "status": record.status},
				)
				return None

			if "progress" in fields and fields["progress"] is not None:
				value = min(100, max(0, int(fields["progress"])))
				fields["progress"] = max(record.progress, value)
			fields["updated_at"] = datetime.now(timezone.utc)

			updated = record.model_copy(update=fields)
			self._records[upload_id] = updated
			self._records.move_to_end(upload_id)
			self._touched[upload_id] = self._clock()
			return updated.model_copy(deep=True)

	def get(self, upload_id: str) -> Optional[UploadRecord]:
		with self._lock:
			self._expire_locked()
			record = self._records.get(upload_id)
			if record is None:
				return None
			self._records.move_to_end(upload_id)
			return record.model_copy(deep=True)

	def _drop_locked(self, upload_id: str) -> None:
		self._records.pop(upload_id, None)
		self._touched.pop(upload_id, None)

	def _expire_locked(self) -> None:
		if not self.ttl_seconds or self.ttl_seconds <= 0:
			return
		cutoff = self._clock() - self.ttl_seconds
		expired = [
			upload_id for upload_id, record in self._records.items()
			if record.is_terminal and self._touched.get(upload_id, 0.0) <= cutoff
		]
		for upload_id in expired:
			self._drop_locked(upload_id)
		if expired:
			logger.debug(f"expired {len(expired)} finished uploads")

	def _evict_locked(self) -> None:
		self._expire_locked()
		if not self.max_entries or self.max_entries <= 0:
			return
		while len(self._records) >= self.max_entries:
			victim = next((uid for uid, rec in self._records.items() if rec.is_terminal), None)
			if victim is None:
				logger.warning(
					"progress store over capacity with only active uploads",
					extra={"entries": len(self._records), "max_entries": self.max_entries},
				)
				return
			self._drop_locked(victim)


# Create a global instance that will be initialized lazily
_progress_store = None

def get_progress_store() -> ProgressStore:
	"""Get the global progress store, creating it if necessary."""
	global _progress_store
	if _progress_store is None:
		_progress_store = ProgressStore()
	return _progress_store
