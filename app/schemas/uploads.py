from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field

from app.core.constants import STATUS_PENDING, TERMINAL_STATUSES
from app.schemas.drive import CamelModel, DriveFileInfo


def _utcnow() -> datetime:
	return datetime.now(timezone.utc)


class UploadRecord(BaseModel):
	"""Progress of one accepted upload, owned by the progress store."""

	id: str
	status: str = STATUS_PENDING
	progress: int = Field(0, ge=0, le=100)
	result: Optional[DriveFileInfo] = None
	error_message: Optional[str] = None
	created_at: datetime = Field(default_factory=_utcnow)
	updated_at: datetime = Field(default_factory=_utcnow)

	@property
	def is_terminal(self) -> bool:
		return self.status in TERMINAL_STATUSES


class UploadAcceptedResponse(CamelModel):
	success: bool = True
	upload_id: str
	status: str = STATUS_PENDING
	progress: int = 0
	message: str


class UploadProgressResponse(CamelModel):
	success: bool = True
	upload_id: str
	status: str
	progress: int
	result: Optional[DriveFileInfo] = None
	error_message: Optional[str] = None

	@classmethod
	def from_record(cls, record: UploadRecord) -> "UploadProgressResponse":
		return cls(
			upload_id=record.id,
			status=record.status,
			progress=record.progress,
			result=record.result,
			error_message=record.error_message,
		)


class BulkUploadSuccess(CamelModel):
	success: bool = True
	file: DriveFileInfo


class BulkUploadFailure(CamelModel):
	success: bool = False
	file_name: str
	error: str


class BulkUploadResult(BaseModel):
	successful: List[BulkUploadSuccess] = Field(default_factory=list)
	failed: List[BulkUploadFailure] = Field(default_factory=list)

	@property
	def success(self) -> bool:
		return not self.failed

	@property
	def total(self) -> int:
		return len(self.successful) + len(self.failed)


class BulkUploadResponse(BaseModel):
	success: bool
	message: str
	results: BulkUploadResult
