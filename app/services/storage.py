import os
import uuid
from dataclasses import dataclass
from typing import Optional, Tuple

from fastapi import UploadFile

from app.core.config import settings
from app.core.constants import DEFAULT_MIME_TYPE, READ_CHUNK_BYTES
from app.core.exceptions import UploadValidationError
from app.utils.file_helpers import ensure_storage_dir, remove_file


@dataclass
class TemporaryFile:
	path: str
	name: str
	mime_type: str
	size: int


def generate_file_destination(original_filename: str, upload_dir: Optional[str] = None) -> Tuple[str, str]:
	file_id = str(uuid.uuid4())
	_, ext = os.path.splitext(os.path.basename(original_filename))
	dst_path = os.path.join(upload_dir or settings.UPLOAD_DIR, f"{file_id}{ext or '.dat'}")
	return file_id, dst_path


async def save_upload(file: UploadFile, upload_dir: Optional[str] = None, max_bytes: Optional[int] = None) -> TemporaryFile:
	"""Stream an incoming upload to a temp file the orchestrator will own."""
	if file is None or not file.filename:
		raise UploadValidationError("No file provided")

	ensure_storage_dir(upload_dir or settings.UPLOAD_DIR)
	_, dst_path = generate_file_destination(file.filename, upload_dir)
	limit = max_bytes if max_bytes is not None else settings.max_file_size_bytes

	# Streaming save to disk
	size = 0
	try:
		with open(dst_path, "wb") as out:
			while True:
				chunk = await file.read(READ_CHUNK_BYTES)
				if not chunk:
					break
				size += len(chunk)
				if size > limit:
					break
				out.write(chunk)
	except BaseException:
		remove_file(dst_path)
		raise

	if size > limit:
		remove_file(dst_path)
		raise UploadValidationError(f"File too large. Maximum size is {limit // (1024 * 1024)}MB.")
	if size == 0:
		remove_file(dst_path)
		raise UploadValidationError(f"Uploaded file {file.filename} is empty")

	return TemporaryFile(
		path=dst_path,
		name=os.path.basename(file.filename),
		mime_type=file.content_type or DEFAULT_MIME_TYPE,
		size=size,
	)


def discard_uploads(files: list[TemporaryFile]) -> None:
	"""Delete temp files that were never handed to the orchestrator."""
	for temp in files:
		remove_file(temp.path)
