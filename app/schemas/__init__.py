from .drive import CamelModel, DriveFileInfo, DriveFileEntry, FileListResponse
from .uploads import (
	UploadRecord,
	UploadAcceptedResponse,
	UploadProgressResponse,
	BulkUploadSuccess,
	BulkUploadFailure,
	BulkUploadResult,
	BulkUploadResponse,
)
from pydantic import BaseModel
from typing import Optional


class HealthResponse(BaseModel):
	status: str
	timestamp: str
	service: str
	authenticated: bool


class AuthUrlResponse(CamelModel):
	success: bool = True
	auth_url: str
	message: str
	instructions: str


class AuthCallbackResponse(CamelModel):
	success: bool = True
	message: str
	refresh_token: Optional[str] = None
	note: str


class AuthStatusResponse(CamelModel):
	authenticated: bool
	has_refresh_token: bool
	message: str
