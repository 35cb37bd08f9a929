import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Union

from app.core.config import settings
from app.core.constants import STATUS_DONE, STATUS_ERROR, STATUS_IN_PROGRESS
from app.core.exceptions import AuthRequired, UploadNotFound, UploadValidationError
from app.schemas.drive import DriveFileInfo
from app.schemas.uploads import BulkUploadFailure, BulkUploadResult, BulkUploadSuccess, UploadRecord
from app.services.auth import CredentialProvider, get_credential_provider
from app.services.drive import DriveGateway, get_drive_gateway
from app.services.progress import ProgressStore, generate_upload_id, get_progress_store
from app.services.storage import TemporaryFile
from app.services.transfer import ProgressReader
from app.utils.file_helpers import remove_file

logger = logging.getLogger(__name__)

_DEFAULT_FOLDER = object()


@dataclass
class UploadJob:
	upload_id: str
	file: TemporaryFile
	folder_id: Optional[str] = None


class UploadOrchestrator:
	"""Relays temp files to Drive in the background.

	``submit`` registers a progress record and queues the transfer; a fixed
	pool of worker tasks drains the queue and writes the outcome back into the
	store. ``submit_many`` runs a batch to completion and returns the aggregate.
	Every transfer deletes its temp file on the way out, whichever path it took.
	"""

	def __init__(
		self,
		store: ProgressStore,
		gateway: DriveGateway,
		credentials: CredentialProvider,
		concurrency: Optional[int] = None,
		progress_interval: Optional[float] = None,
		default_folder_id: Union[Optional[str], object] = _DEFAULT_FOLDER,
	) -> None:
		self.store = store
		self.gateway = gateway
		self.credentials = credentials
		self.concurrency = max(1, concurrency or settings.MAX_CONCURRENCY)
		self.progress_interval = progress_interval if progress_interval is not None else settings.PROGRESS_INTERVAL
		self.default_folder_id = (
			settings.GOOGLE_DRIVE_FOLDER_ID if default_folder_id is _DEFAULT_FOLDER else default_folder_id
		)
		self.queue = None  # Will be created lazily
		self.semaphore = None  # Will be created lazily
		self.workers: list[asyncio.Task] = []
		self._started = False

	def _ensure_initialized(self):
		"""Ensure queue and semaphore are initialized in the current event loop."""
		if self.queue is None:
			self.queue = asyncio.Queue()
		if self.semaphore is None:
			self.semaphore = asyncio.Semaphore(self.concurrency)

	@property
	def started(self) -> bool:
		return self._started

	async def start(self) -> None:
		if self._started:
			return
		self._ensure_initialized()
		self._started = True
		for _ in range(self.concurrency):
			self.workers.append(asyncio.create_task(self._worker_loop()))
		logger.info(f"Upload workers started (concurrency={self.concurrency})")

	async def stop(self) -> None:
		for w in self.workers:
			w.cancel()
		if self.workers:
			await asyncio.gather(*self.workers, return_exceptions=True)
		self.workers.clear()
		self._started = False

	async def join(self) -> None:
		"""Wait until every submitted upload has reached a terminal state."""
		if self.queue is not None:
			await self.queue.join()

	def _require_auth(self) -> None:
		if not self.credentials.is_authenticated():
			raise AuthRequired()

	def _folder(self, destination_folder: Optional[str]) -> Optional[str]:
		return destination_folder or self.default_folder_id

	async def submit(self, file: TemporaryFile, destination_folder: Optional[str] = None) -> str:
		"""Accept a temp file and return its upload id right away.

		Raises AuthRequired, leaving the temp file to the caller, when there is
		no credential. Otherwise the record exists before this returns and the
		temp file belongs to the orchestrator.
		"""
		self._require_auth()
		await self.start()

		upload_id = generate_upload_id()
		self.store.create(upload_id)
		self.queue.put_nowait(UploadJob(upload_id, file, self._folder(destination_folder)))
		logger.info(
			"upload accepted",
			extra={"upload_id": upload_id, "file_name": file.name, "size": file.size},
		)
		return upload_id

	def get_status(self, upload_id: str) -> UploadRecord:
		record = self.store.get(upload_id)
		if record is None:
			raise UploadNotFound()
		return record

	async def submit_many(
		self,
		files: List[TemporaryFile],
		destination_folder: Optional[str] = None,
	) -> BulkUploadResult:
		"""Upload a batch concurrently and wait for all of them.

		Each file succeeds or fails on its own; a failure never cancels its
		siblings. The progress store is not involved.
		"""
		self._require_auth()
		if not files:
			raise UploadValidationError("No files provided")
		self._ensure_initialized()

		folder_id = self._folder(destination_folder)
		outcomes = await asyncio.gather(*(self._bulk_one(f, folder_id) for f in files))

		result = BulkUploadResult()
		for outcome in outcomes:
			if isinstance(outcome, BulkUploadSuccess):
				result.successful.append(outcome)
			else:
				result.failed.append(outcome)
		logger.info(
			f"{len(result.successful)} files uploaded successfully, {len(result.failed)} failed",
			extra={"total": len(files)},
		)
		return result

	async def _bulk_one(
		self, file: TemporaryFile, folder_id: Optional[str]
	) -> Union[BulkUploadSuccess, BulkUploadFailure]:
		async with self.semaphore:
			try:
				info = await self._transfer(file, folder_id)
			except Exception as e:
				logger.error(f"Bulk upload of {file.name} failed: {e}")
				return BulkUploadFailure(file_name=file.name, error=str(e) or type(e).__name__)
		return BulkUploadSuccess(file=info)

	async def _worker_loop(self) -> None:
		while True:
			try:
				job = await self.queue.get()
			except asyncio.CancelledError:
				break
			try:
				async with self.semaphore:
					await self._run_upload(job)
			except asyncio.CancelledError:
				break
			except Exception as e:
				logger.exception("worker error", extra={"upload_id": job.upload_id, "error": str(e)})
			finally:
				self.queue.task_done()

	async def _run_upload(self, job: UploadJob) -> None:
		upload_id = job.upload_id
		self.store.update(upload_id, status=STATUS_IN_PROGRESS)

		def _on_progress(percentage: int) -> None:
			self.store.update(upload_id, progress=percentage)

		try:
			info = await self._transfer(job.file, job.folder_id, _on_progress)
		except Exception as e:
			current = self.store.get(upload_id)
			self.store.update(
				upload_id,
				status=STATUS_ERROR,
				progress=current.progress if current else 0,
				error_message=str(e) or type(e).__name__,
			)
			logger.exception("upload failed", extra={"upload_id": upload_id, "file_name": job.file.name})
			return

		self.store.update(upload_id, status=STATUS_DONE, progress=100, result=info)
		logger.info("upload completed", extra={"upload_id": upload_id, "drive_file_id": info.id})

	async def _transfer(
		self,
		file: TemporaryFile,
		folder_id: Optional[str],
		on_progress: Optional[Callable[[int], None]] = None,
	) -> DriveFileInfo:
		try:
			return await asyncio.to_thread(self._upload_blocking, file, folder_id, on_progress)
		finally:
			if remove_file(file.path):
				logger.debug("deleted temp file", extra={"path": file.path})

	def _upload_blocking(
		self,
		file: TemporaryFile,
		folder_id: Optional[str],
		on_progress: Optional[Callable[[int], None]],
	) -> DriveFileInfo:
		with open(file.path, "rb") as fh:
			reader = ProgressReader(fh, file.size, on_progress, self.progress_interval)
			response = self.gateway.create_file(reader, file.name, file.mime_type, folder_id)
			reader.flush_progress()
		return DriveFileInfo.from_drive(response)


# Create a global instance that will be initialized lazily
_upload_orchestrator = None

def get_upload_orchestrator() -> UploadOrchestrator:
	"""Get the global upload orchestrator instance, creating it if necessary."""
	global _upload_orchestrator
	if _upload_orchestrator is None:
		_upload_orchestrator = UploadOrchestrator(
			store=get_progress_store(),
			gateway=get_drive_gateway(),
			credentials=get_credential_provider(),
		)
	return _upload_orchestrator
