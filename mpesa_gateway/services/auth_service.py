import base64
import threading
import time
from typing import Any, Dict, Optional, Tuple

from mpesa_gateway.config import ROUTES
from mpesa_gateway.errors import AuthenticationError
from mpesa_gateway.services.http_service import HttpService
from mpesa_gateway.utils.logger import get_logger

logger = get_logger(__name__)

# Safaricom tokens expire in 3600s; cached tokens are dropped 60s early
_TOKEN_SAFETY_MARGIN = 60


class AuthService:
    """
    Obtains Daraja OAuth bearer tokens from client credentials.

    By default every call hits the token endpoint. With ``cache_token=True``
    a token is reused until shortly before ``expires_in`` elapses.
    """

    def __init__(self, client_key: str, client_secret: str, http: HttpService, cache_token: bool = False):
        self.client_key = client_key
        self.client_secret = client_secret
        self.http = http
        self.cache_token = cache_token

        self._token: Optional[Dict[str, Any]] = None
        self._token_expiry: float = 0.0
        self._lock = threading.Lock()

    def basic_auth_header(self) -> str:
        raw = f"{self.client_key}:{self.client_secret}"
        return "Basic " + base64.b64encode(raw.encode("utf-8")).decode("utf-8")

    def authenticate(self) -> Tuple[Dict[str, Any], Dict[str, str]]:
        """
        Fetch an access token.

        Returns:
            (token response, headers for authorised Daraja calls)

        Raises:
            AuthenticationError: the token endpoint rejected the credentials
                or returned no access token
            TransportError: network failure or unparseable body
        """
        if self.cache_token:
            with self._lock:
                if self._token and time.time() < self._token_expiry:
                    return self._token, self._bearer_headers(self._token["access_token"])

        token = self._request_token()

        if self.cache_token:
            expires_in = _parse_expires_in(token.get("expires_in"))
            with self._lock:
                self._token = token
                self._token_expiry = time.time() + expires_in - _TOKEN_SAFETY_MARGIN
            logger.debug("Access token refreshed (expires in %ds)", expires_in)

        return token, self._bearer_headers(token["access_token"])

    def _request_token(self) -> Dict[str, Any]:
        headers = {"Authorization": self.basic_auth_header()}
        token = self.http.get(ROUTES["auth"], headers)

        if token.get("errorCode"):
            logger.warning("Token request rejected: %s", token.get("errorCode"))
            raise AuthenticationError(token.get("errorMessage"), response=token)

        if not token.get("access_token"):
            raise AuthenticationError("failed to obtain access token", response=token)

        return token

    @staticmethod
    def _bearer_headers(access_token: str) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {access_token}",
            "Content-Type":  "application/json",
        }


def _parse_expires_in(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 3600
