"""
Constants for the Drive upload relay.
"""

# Upload status constants
STATUS_PENDING = "pending"
STATUS_IN_PROGRESS = "in_progress"
STATUS_DONE = "done"
STATUS_ERROR = "error"

ACTIVE_STATUSES = frozenset({STATUS_PENDING, STATUS_IN_PROGRESS})
TERMINAL_STATUSES = frozenset({STATUS_DONE, STATUS_ERROR})

# Upload identifiers
UPLOAD_ID_PREFIX = "upload_"
UPLOAD_ID_SUFFIX_LENGTH = 9

# Google Drive
DRIVE_SCOPES = [
    "https://www.googleapis.com/auth/drive.file",
    "https://www.googleapis.com/auth/drive",
]
DRIVE_TOKEN_URI = "https://oauth2.googleapis.com/token"
DRIVE_AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
DRIVE_CREATE_FIELDS = "id,name,webViewLink,webContentLink"
DRIVE_LIST_FIELDS = "files(id,name,createdTime,mimeType,size,webViewLink)"
DEFAULT_MIME_TYPE = "application/octet-stream"

# Streaming
READ_CHUNK_BYTES = 1024 * 1024

SERVICE_NAME = "Google Drive Upload API (OAuth User)"
