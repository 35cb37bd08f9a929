from fastapi import APIRouter, Depends, HTTPException, status, UploadFile, File, Form, Query
from typing import List, Optional
import asyncio
import logging

from app.core.config import settings
from app.core.exceptions import AuthRequired, UploadValidationError
from app.schemas import (
	AuthCallbackResponse,
	AuthStatusResponse,
	AuthUrlResponse,
	BulkUploadResponse,
	DriveFileEntry,
	FileListResponse,
	UploadAcceptedResponse,
	UploadProgressResponse,
)
from app.services.auth import OAuthCredentialProvider, get_credential_provider
from app.services.drive import DriveGateway, get_drive_gateway
from app.services.storage import TemporaryFile, discard_uploads, save_upload
from app.services.uploads import UploadOrchestrator, get_upload_orchestrator

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/upload", response_model=UploadAcceptedResponse, status_code=status.HTTP_202_ACCEPTED)
async def upload(
	file: Optional[UploadFile] = File(None, description="File to relay to Google Drive"),
	folder_id: Optional[str] = Form(None, alias="folderId", description="Destination Drive folder"),
	orchestrator: UploadOrchestrator = Depends(get_upload_orchestrator),
) -> UploadAcceptedResponse:
	# Checked before touching the body so nothing is written to disk
	if not orchestrator.credentials.is_authenticated():
		raise AuthRequired()
	if file is None:
		raise UploadValidationError("No file provided")

	temp = await save_upload(file)
	try:
		upload_id = await orchestrator.submit(temp, folder_id)
	except Exception:
		discard_uploads([temp])
		raise

	return UploadAcceptedResponse(
		upload_id=upload_id,
		message=f"Upload started. Poll /upload/progress/{upload_id} for progress.",
	)


@router.get(
	"/upload/progress/{upload_id}",
	response_model=UploadProgressResponse,
	response_model_exclude_none=True,
)
async def get_upload_progress(
	upload_id: str,
	orchestrator: UploadOrchestrator = Depends(get_upload_orchestrator),
) -> UploadProgressResponse:
	record = orchestrator.get_status(upload_id)
	return UploadProgressResponse.from_record(record)


@router.post("/upload-multiple", response_model=BulkUploadResponse)
async def upload_multiple(
	files: Optional[List[UploadFile]] = File(None, description="Files to relay to Google Drive"),
	folder_id: Optional[str] = Form(None, alias="folderId", description="Destination Drive folder"),
	orchestrator: UploadOrchestrator = Depends(get_upload_orchestrator),
) -> BulkUploadResponse:
	if not orchestrator.credentials.is_authenticated():
		raise AuthRequired()
	if not files:
		raise UploadValidationError("No files provided")
	if len(files) > settings.MAX_BULK_FILES:
		raise UploadValidationError(f"Too many files. Maximum is {settings.MAX_BULK_FILES} per request.")

	saved: List[TemporaryFile] = []
	try:
		for f in files:
			saved.append(await save_upload(f))
	except Exception:
		discard_uploads(saved)
		raise

	# Each per-file transfer removes its own temp file
	result = await orchestrator.submit_many(saved, folder_id)
	return BulkUploadResponse(
		success=result.success,
		message=f"{len(result.successful)} files uploaded successfully, {len(result.failed)} failed",
		results=result,
	)


@router.get("/files", response_model=FileListResponse, response_model_exclude_none=True)
async def list_files(
	gateway: DriveGateway = Depends(get_drive_gateway),
) -> FileListResponse:
	if not gateway.credentials.is_authenticated():
		raise AuthRequired()
	files = await asyncio.to_thread(gateway.list_files, settings.LIST_PAGE_SIZE, settings.GOOGLE_DRIVE_FOLDER_ID)
	return FileListResponse(files=[DriveFileEntry.model_validate(f) for f in files])


@router.get("/auth", response_model=AuthUrlResponse)
async def authorize(
	credentials: OAuthCredentialProvider = Depends(get_credential_provider),
) -> AuthUrlResponse:
	return AuthUrlResponse(
		auth_url=credentials.authorization_url(),
		message="Visit this URL to authorize the application",
		instructions="After authorization, you will get a code. Use /auth/callback?code=YOUR_CODE",
	)


@router.get("/auth/callback", response_model=AuthCallbackResponse)
async def auth_callback(
	code: Optional[str] = Query(None, description="Authorization code returned by Google"),
	credentials: OAuthCredentialProvider = Depends(get_credential_provider),
) -> AuthCallbackResponse:
	if not code:
		raise HTTPException(status_code=400, detail="Authorization code not provided")
	try:
		tokens = await asyncio.to_thread(credentials.exchange_code, code)
	except Exception as e:
		logger.error(f"Error getting OAuth tokens: {e}")
		raise HTTPException(status_code=500, detail="Failed to exchange authorization code for tokens")

	return AuthCallbackResponse(
		message="Authorization successful!",
		refresh_token=tokens.refresh_token,
		note="Save the refresh token to your .env file as GOOGLE_REFRESH_TOKEN",
	)


@router.get("/auth/status", response_model=AuthStatusResponse)
async def auth_status(
	credentials: OAuthCredentialProvider = Depends(get_credential_provider),
) -> AuthStatusResponse:
	authenticated = credentials.is_authenticated()
	return AuthStatusResponse(
		authenticated=authenticated,
		has_refresh_token=credentials.has_refresh_token,
		message="Ready to upload files" if authenticated else "Please authorize first using /auth endpoint",
	)
