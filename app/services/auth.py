import logging
import threading
from typing import Any, Dict, Optional, Protocol, runtime_checkable

from google.auth.exceptions import RefreshError, TransportError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow

from app.core.config import settings
from app.core.constants import DRIVE_AUTH_URI, DRIVE_SCOPES, DRIVE_TOKEN_URI
from app.core.exceptions import AuthRequired

logger = logging.getLogger(__name__)


@runtime_checkable
class CredentialProvider(Protocol):
	"""What the orchestrator and the Drive gateway need from an auth source."""

	def is_authenticated(self) -> bool:
		...

	def is_valid(self) -> bool:
		...

	def refresh(self) -> None:
		...

	def get_credentials(self) -> Any:
		...


class OAuthCredentialProvider:
	"""User OAuth credentials for Drive, seeded from a stored refresh token.

	Access tokens are refreshed on demand. Refresh is serialized because
	several transfer threads may ask for credentials at the same time.
	"""

	def __init__(
		self,
		client_id: str,
		client_secret: str,
		redirect_uri: str,
		refresh_token: Optional[str] = None,
	) -> None:
		self.client_id = client_id
		self.client_secret = client_secret
		self.redirect_uri = redirect_uri
		self._credentials: Optional[Credentials] = None
		self._lock = threading.Lock()
		if refresh_token:
			self._credentials = Credentials(
				token=None,
				refresh_token=refresh_token,
				client_id=client_id,
				client_secret=client_secret,
				token_uri=DRIVE_TOKEN_URI,
				scopes=DRIVE_SCOPES,
			)

	@property
	def has_refresh_token(self) -> bool:
		return bool(self._credentials is not None and self._credentials.refresh_token)

	def is_authenticated(self) -> bool:
		return self.has_refresh_token

	def is_valid(self) -> bool:
		return self.is_authenticated() and bool(self._credentials.valid)

	def refresh(self) -> None:
		if not self.is_authenticated():
			raise AuthRequired()
		with self._lock:
			try:
				self._credentials.refresh(Request())
			except (RefreshError, TransportError) as e:
				logger.error(f"Failed to refresh Google access token: {e}")
				raise AuthRequired(f"Failed to refresh Google credentials: {e}") from e
		logger.debug("refreshed Google access token")

	def get_credentials(self) -> Credentials:
		if not self.is_valid():
			self.refresh()
		return self._credentials

	def set_credentials(self, credentials: Credentials) -> None:
		with self._lock:
			self._credentials = credentials

	def _client_config(self) -> Dict[str, Any]:
		return {
			"web": {
				"client_id": self.client_id,
				"client_secret": self.client_secret,
				"auth_uri": DRIVE_AUTH_URI,
				"token_uri": DRIVE_TOKEN_URI,
				"redirect_uris": [self.redirect_uri],
			}
		}

	def _flow(self) -> Flow:
		# Each request builds a fresh Flow, so there is no stored PKCE verifier to replay
		return Flow.from_client_config(
			self._client_config(),
			scopes=DRIVE_SCOPES,
			redirect_uri=self.redirect_uri,
			autogenerate_code_verifier=False,
		)

	def authorization_url(self) -> str:
		url, _state = self._flow().authorization_url(access_type="offline", prompt="consent")
		return url

	def exchange_code(self, code: str) -> Credentials:
		"""Trade an authorization code for tokens and start using them."""
		flow = self._flow()
		flow.fetch_token(code=code)
		credentials = flow.credentials
		if not credentials.refresh_token and self.has_refresh_token:
			# Google omits the refresh token on re-consent; keep the one we have
			credentials = Credentials(
				token=credentials.token,
				refresh_token=self._credentials.refresh_token,
				client_id=self.client_id,
				client_secret=self.client_secret,
				token_uri=DRIVE_TOKEN_URI,
				scopes=DRIVE_SCOPES,
			)
		self.set_credentials(credentials)
		logger.info("Google authorization completed", extra={"has_refresh_token": bool(credentials.refresh_token)})
		return credentials


# Create a global instance that will be initialized lazily
_credential_provider = None

def get_credential_provider() -> OAuthCredentialProvider:
	"""Get the global credential provider, creating it if necessary."""
	global _credential_provider
	if _credential_provider is None:
		_credential_provider = OAuthCredentialProvider(
			client_id=settings.GOOGLE_CLIENT_ID,
			client_secret=settings.GOOGLE_CLIENT_SECRET,
			redirect_uri=settings.GOOGLE_REDIRECT_URI,
			refresh_token=settings.GOOGLE_REFRESH_TOKEN,
		)
	return _credential_provider
