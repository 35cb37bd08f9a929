import io
import os
import time

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from app.core.exceptions import UploadValidationError
from app.services.storage import discard_uploads, generate_file_destination, save_upload
from app.utils.file_helpers import cleanup_old_files, remove_file


def _upload_file(name: str, content: bytes, content_type: str = "text/plain") -> UploadFile:
	return UploadFile(
		file=io.BytesIO(content),
		filename=name,
		headers=Headers({"content-type": content_type}),
	)


def test_generate_file_destination_keeps_extension(tmp_path):
	_, path = generate_file_destination("../../etc/report.final.PDF", str(tmp_path))
	assert os.path.dirname(path) == str(tmp_path)
	assert path.endswith(".PDF")

	_, no_ext = generate_file_destination("README", str(tmp_path))
	assert no_ext.endswith(".dat")


@pytest.mark.asyncio
async def test_save_upload_streams_to_disk(tmp_path):
	content = os.urandom(3 * 1024 * 1024 + 17)
	temp = await save_upload(_upload_file("dir/photo.jpg", content, "image/jpeg"), upload_dir=str(tmp_path))

	assert temp.name == "photo.jpg"
	assert temp.mime_type == "image/jpeg"
	assert temp.size == len(content)
	with open(temp.path, "rb") as fh:
		assert fh.read() == content


@pytest.mark.asyncio
async def test_save_upload_rejects_oversized_file(tmp_path):
	with pytest.raises(UploadValidationError) as exc_info:
		await save_upload(_upload_file("big.bin", b"x" * 2048), upload_dir=str(tmp_path), max_bytes=1024)
	assert "File too large" in exc_info.value.message
	assert os.listdir(tmp_path) == []


@pytest.mark.asyncio
async def test_save_upload_rejects_empty_file(tmp_path):
	with pytest.raises(UploadValidationError):
		await save_upload(_upload_file("empty.txt", b""), upload_dir=str(tmp_path))
	assert os.listdir(tmp_path) == []


class _DroppedStream(io.BytesIO):
	"""Client connection that goes away after a few reads."""

	def __init__(self, content: bytes, fail_on_read: int) -> None:
		super().__init__(content)
		self.reads = 0
		self.fail_on_read = fail_on_read

	def read(self, size=-1):
		self.reads += 1
		if self.reads >= self.fail_on_read:
			raise OSError("client disconnected")
		return super().read(size)


@pytest.mark.asyncio
async def test_save_upload_removes_partial_file_when_stream_breaks(tmp_path):
	stream = _DroppedStream(os.urandom(4 * 1024 * 1024), fail_on_read=3)
	upload = UploadFile(file=stream, filename="video.mp4", headers=Headers({"content-type": "video/mp4"}))

	with pytest.raises(OSError):
		await save_upload(upload, upload_dir=str(tmp_path), max_bytes=10 * 1024 * 1024)
	assert stream.reads == 3
	assert os.listdir(tmp_path) == []


@pytest.mark.asyncio
async def test_save_upload_requires_filename(tmp_path):
	with pytest.raises(UploadValidationError):
		await save_upload(_upload_file("", b"data"), upload_dir=str(tmp_path))


@pytest.mark.asyncio
async def test_discard_uploads_removes_files(tmp_path):
	temps = [await save_upload(_upload_file(f"{i}.txt", b"data"), upload_dir=str(tmp_path)) for i in range(2)]
	discard_uploads(temps)
	assert os.listdir(tmp_path) == []


def test_remove_file_reports_whether_it_deleted(tmp_path):
	target = tmp_path / "a.txt"
	target.write_bytes(b"a")
	assert remove_file(str(target)) is True
	assert remove_file(str(target)) is False


def test_cleanup_old_files_only_removes_stale(tmp_path):
	stale = tmp_path / "stale.bin"
	fresh = tmp_path / "fresh.bin"
	stale.write_bytes(b"old")
	fresh.write_bytes(b"new")
	two_days_ago = time.time() - 48 * 3600
	os.utime(stale, (two_days_ago, two_days_ago))

	assert cleanup_old_files(str(tmp_path), max_age_hours=24) == 1
	assert not stale.exists()
	assert fresh.exists()


def test_cleanup_old_files_missing_directory(tmp_path):
	assert cleanup_old_files(str(tmp_path / "missing")) == 0
