"""
Services package for the Drive upload relay.
"""

from .progress import ProgressStore, get_progress_store
from .auth import CredentialProvider, OAuthCredentialProvider, get_credential_provider
from .drive import DriveGateway, get_drive_gateway
from .storage import TemporaryFile, save_upload
from .uploads import UploadOrchestrator, get_upload_orchestrator

__all__ = [
    "ProgressStore",
    "get_progress_store",
    "CredentialProvider",
    "OAuthCredentialProvider",
    "get_credential_provider",
    "DriveGateway",
    "get_drive_gateway",
    "TemporaryFile",
    "save_upload",
    "UploadOrchestrator",
    "get_upload_orchestrator"
]
