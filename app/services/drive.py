import logging
from typing import Any, BinaryIO, Dict, List, Optional

import httplib2
from google.auth.exceptions import TransportError
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseUpload

from app.core.config import settings
from app.core.constants import DEFAULT_MIME_TYPE, DRIVE_CREATE_FIELDS, DRIVE_LIST_FIELDS
from app.core.exceptions import TransferFailure
from app.services.auth import CredentialProvider, get_credential_provider

logger = logging.getLogger(__name__)


def _http_error_reason(err: HttpError) -> str:
	status = getattr(getattr(err, "resp", None), "status", None)
	reason = err.reason if hasattr(err, "reason") else str(err)
	return f"{status} {reason}" if status else str(reason)


class DriveGateway:
	"""Thin wrapper over the Drive v3 client.

	A client is built per call: googleapiclient service objects share an
	httplib2 connection and are not safe to use from several threads.
	"""

	def __init__(self, credentials: CredentialProvider, chunk_size: Optional[int] = None) -> None:
		self.credentials = credentials
		self.chunk_size = chunk_size or settings.upload_chunk_size_bytes

	def _service(self) -> Any:
		return build("drive", "v3", credentials=self.credentials.get_credentials(), cache_discovery=False)

	def create_file(
		self,
		stream: BinaryIO,
		name: str,
		mime_type: Optional[str],
		folder_id: Optional[str] = None,
	) -> Dict[str, Any]:
		"""Upload ``stream`` as a new Drive file.

		Resumable mode reads the stream in ``chunk_size`` pieces, which is what
		lets a wrapping ProgressReader observe the transfer as it happens.

		Returns the Drive resource with id, name, webViewLink and webContentLink.
		AuthRequired from the credential provider is not converted.
		"""
		metadata: Dict[str, Any] = {"name": name}
		if folder_id:
			metadata["parents"] = [folder_id]
		media = MediaIoBaseUpload(
			stream,
			mimetype=mime_type or DEFAULT_MIME_TYPE,
			chunksize=self.chunk_size,
			resumable=True,
		)
		try:
			response = (
				self._service()
				.files()
				.create(body=metadata, media_body=media, fields=DRIVE_CREATE_FIELDS)
				.execute()
			)
		except HttpError as e:
			logger.error(f"Drive rejected upload of {name}: {e}")
			raise TransferFailure(f"Google Drive rejected the upload: {_http_error_reason(e)}") from e
		except (TransportError, httplib2.HttpLib2Error, OSError) as e:
			logger.error(f"Network error uploading {name} to Drive: {e}")
			raise TransferFailure(f"Network error while uploading to Google Drive: {e}") from e

		logger.info("uploaded file to Drive", extra={"drive_file_id": response.get("id"), "file_name": name})
		return response

	def list_files(self, page_size: int = 10, folder_id: Optional[str] = None) -> List[Dict[str, Any]]:
		"""Most recently created files, optionally limited to one folder."""
		params: Dict[str, Any] = {
			"pageSize": page_size,
			"fields": DRIVE_LIST_FIELDS,
			"orderBy": "createdTime desc",
		}
		if folder_id:
			params["q"] = f"'{folder_id}' in parents"
		try:
			response = self._service().files().list(**params).execute()
		except HttpError as e:
			raise TransferFailure(f"Failed to list files: {_http_error_reason(e)}") from e
		except (TransportError, httplib2.HttpLib2Error, OSError) as e:
			raise TransferFailure(f"Failed to list files: {e}") from e
		return response.get("files", [])


# Create a global instance that will be initialized lazily
_drive_gateway = None

def get_drive_gateway() -> DriveGateway:
	"""Get the global Drive gateway, creating it if necessary."""
	global _drive_gateway
	if _drive_gateway is None:
		_drive_gateway = DriveGateway(get_credential_provider())
	return _drive_gateway
