"""
Error taxonomy for the upload relay.

Errors raised before an upload is acknowledged are rendered straight into the
HTTP response by the handlers registered in ``app.main``. Errors raised inside
a detached transfer never reach a response; they are captured into the
upload's progress record instead.
"""
from typing import Any, Dict


class UploadServiceError(Exception):
	"""Base class for errors surfaced to API callers."""

	status_code = 500

	def __init__(self, message: str) -> None:
		super().__init__(message)
		self.message = message

	def to_dict(self) -> Dict[str, Any]:
		return {"success": False, "error": self.message}


class AuthRequired(UploadServiceError):
	"""No usable Google credential; the transfer is never started."""

	status_code = 401

	def __init__(self, message: str = "Not authenticated. Please visit /auth to authorize first.") -> None:
		super().__init__(message)


class UploadValidationError(UploadServiceError):
	"""Missing, empty or oversized upload."""

	status_code = 400


class UploadNotFound(UploadServiceError):
	status_code = 404

	def __init__(self, message: str = "Upload ID not found") -> None:
		super().__init__(message)


class TransferFailure(UploadServiceError):
	"""Drive rejected the write, or the network or stream failed mid-flight."""

	status_code = 502
