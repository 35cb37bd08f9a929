import os
import logging
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()


def _parse_origins(raw: Optional[str]) -> List[str]:
	"""Split ALLOWED_ORIGINS into a list, defaulting to every origin."""
	if not raw:
		return ["*"]
	origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
	return origins or ["*"]


def setup_logging() -> None:
	"""Setup logging configuration."""
	logging.basicConfig(
		level=os.getenv("LOG_LEVEL", "INFO").upper(),
		format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
		handlers=[
			logging.StreamHandler(),
		]
	)

	# The discovery cache warns on every client build when oauth2client is absent
	logging.getLogger('googleapiclient.discovery_cache').setLevel(logging.ERROR)
	logging.getLogger('googleapiclient.discovery').setLevel(logging.WARNING)


class Settings:
	def __init__(self) -> None:
		self.PORT = int(os.getenv("PORT", "3000"))
		self.BASE_URL = os.getenv("BASE_URL", f"http://localhost:{self.PORT}")
		self.ALLOWED_ORIGINS = _parse_origins(os.getenv("ALLOWED_ORIGINS"))

		# Google OAuth client
		self.GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID", "")
		self.GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET", "")
		self.GOOGLE_REDIRECT_URI = os.getenv("GOOGLE_REDIRECT_URI", f"{self.BASE_URL}/auth/callback")
		self.GOOGLE_REFRESH_TOKEN = os.getenv("GOOGLE_REFRESH_TOKEN") or None
		self.GOOGLE_DRIVE_FOLDER_ID = os.getenv("GOOGLE_DRIVE_FOLDER_ID") or None

		# Upload constraints
		self.MAX_FILE_SIZE_MB = int(os.getenv("MAX_FILE_SIZE_MB", "50"))
		self.MAX_BULK_FILES = int(os.getenv("MAX_BULK_FILES", "10"))
		self.UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")
		self.STATIC_DIR = os.getenv("STATIC_DIR", "public")
		self.STALE_UPLOAD_HOURS = int(os.getenv("STALE_UPLOAD_HOURS", "24"))

		# Transfer tuning
		self.MAX_CONCURRENCY = int(os.getenv("MAX_CONCURRENCY", "4"))
		self.PROGRESS_INTERVAL = float(os.getenv("PROGRESS_INTERVAL", "0.1"))
		self.UPLOAD_CHUNK_SIZE_MB = int(os.getenv("UPLOAD_CHUNK_SIZE_MB", "1"))

		# Progress store bounds
		self.PROGRESS_TTL_SECONDS = float(os.getenv("PROGRESS_TTL_SECONDS", "3600"))
		self.PROGRESS_MAX_ENTRIES = int(os.getenv("PROGRESS_MAX_ENTRIES", "1000"))

		self.LIST_PAGE_SIZE = int(os.getenv("LIST_PAGE_SIZE", "10"))

	@property
	def max_file_size_bytes(self) -> int:
		return self.MAX_FILE_SIZE_MB * 1024 * 1024

	@property
	def upload_chunk_size_bytes(self) -> int:
		# Drive requires resumable chunks in multiples of 256 KiB
		return max(1, self.UPLOAD_CHUNK_SIZE_MB) * 1024 * 1024


# Setup logging when module is imported
setup_logging()
settings = Settings()
