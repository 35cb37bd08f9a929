"""
Pytest configuration and common fixtures for testing.
"""
import os
import threading
import time
from typing import Any, Dict, List, Optional

import pytest

from app.core.exceptions import AuthRequired, TransferFailure
from app.services.progress import ProgressStore
from app.services.storage import TemporaryFile
from app.services.uploads import UploadOrchestrator


class FakeCredentials:
	"""Credential provider double whose expiry is set by the test."""

	def __init__(self, authenticated: bool = True, valid: bool = True) -> None:
		self.authenticated = authenticated
		self.valid = valid
		self.refresh_calls = 0
		self.has_refresh_token = authenticated

	def is_authenticated(self) -> bool:
		return self.authenticated

	def is_valid(self) -> bool:
		return self.authenticated and self.valid

	def refresh(self) -> None:
		if not self.authenticated:
			raise AuthRequired()
		self.refresh_calls += 1
		self.valid = True

	def get_credentials(self) -> Any:
		if not self.is_valid():
			self.refresh()
		return object()


class FakeDriveGateway:
	"""Reads the stream in chunks the way a resumable upload does.

	``reject_names`` fail before any byte is read; ``fail_after_bytes`` raises
	a network fault once that many bytes have gone through.
	"""

	def __init__(
		self,
		credentials: Optional[FakeCredentials] = None,
		chunk_size: int = 256 * 1024,
		reject_names: Optional[set] = None,
		fail_after_bytes: Optional[int] = None,
		error: Optional[Exception] = None,
		chunk_delay: float = 0.0,
	) -> None:
		self.credentials = credentials or FakeCredentials()
		self.chunk_size = chunk_size
		self.reject_names = reject_names or set()
		self.fail_after_bytes = fail_after_bytes
		self.error = error
		self.chunk_delay = chunk_delay
		self.calls: List[Dict[str, Any]] = []
		self.listed: List[Dict[str, Any]] = []
		self.active = 0
		self.peak_active = 0
		self._lock = threading.Lock()

	def create_file(self, stream, name, mime_type, folder_id=None) -> Dict[str, Any]:
		with self._lock:
			self.active += 1
			self.peak_active = max(self.peak_active, self.active)
		try:
			return self._receive(stream, name, mime_type, folder_id)
		finally:
			with self._lock:
				self.active -= 1

	def _receive(self, stream, name, mime_type, folder_id) -> Dict[str, Any]:
		self.credentials.get_credentials()
		if name in self.reject_names:
			raise TransferFailure(f"Google Drive rejected the upload: 400 bad file {name}")

		received = bytearray()
		stream.seek(0)
		while True:
			chunk = stream.read(self.chunk_size)
			if not chunk:
				break
			received.extend(chunk)
			if self.chunk_delay:
				time.sleep(self.chunk_delay)
			if self.fail_after_bytes is not None and len(received) >= self.fail_after_bytes:
				raise self.error or TransferFailure("Network error while uploading to Google Drive: connection reset")

		with self._lock:
			index = len(self.calls) + 1
			self.calls.append({
				"name": name,
				"mime_type": mime_type,
				"folder_id": folder_id,
				"data": bytes(received),
			})
		return {
			"id": f"drive-{index}",
			"name": name,
			"webViewLink": f"https://drive.google.com/file/d/drive-{index}/view",
			"webContentLink": f"https://drive.google.com/uc?id=drive-{index}&export=download",
		}

	def list_files(self, page_size: int = 10, folder_id: Optional[str] = None) -> List[Dict[str, Any]]:
		return self.listed[:page_size]


def make_temp_file(directory, name: str = "report.pdf", size: int = 1024 * 1024, mime_type: str = "application/pdf") -> TemporaryFile:
	"""Write ``size`` bytes to a temp file the way the HTTP surface would."""
	path = os.path.join(str(directory), f"tmp-{name}")
	with open(path, "wb") as fh:
		fh.write(os.urandom(size))
	return TemporaryFile(path=path, name=name, mime_type=mime_type, size=size)


@pytest.fixture
def credentials():
	return FakeCredentials()


@pytest.fixture
def gateway(credentials):
	return FakeDriveGateway(credentials)


@pytest.fixture
def store():
	return ProgressStore(max_entries=100, ttl_seconds=3600)


@pytest.fixture
async def orchestrator(store, gateway, credentials):
	"""Create a fresh UploadOrchestrator for each test."""
	manager = UploadOrchestrator(
		store=store,
		gateway=gateway,
		credentials=credentials,
		concurrency=2,
		progress_interval=0.0,
		default_folder_id=None,
	)
	yield manager
	# Cleanup
	await manager.stop()


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
	"""Point temp-file storage at a per-test directory."""
	from app.core.config import settings

	target = tmp_path / "uploads"
	target.mkdir()
	monkeypatch.setattr(settings, "UPLOAD_DIR", str(target))
	return target
