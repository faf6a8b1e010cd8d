from typing import Any, Dict, Optional

import requests

from mpesa_gateway.errors import TransportError
from mpesa_gateway.utils.logger import get_logger

logger = get_logger(__name__)


class HttpService:
    """
    Thin wrapper over a requests.Session bound to a Daraja base URL.

    Every call returns a response envelope: the decoded JSON body merged
    over ``success``/``status`` flags, so remote fields win on collision.
    """

    def __init__(self, base_url: str, timeout: int = 30, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    def get(self, path: str, headers: Dict[str, str]) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            resp = self._session.get(url, headers=headers, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.error("GET %s failed: %s", path, exc)
            raise TransportError(f"GET {path}: network error – {exc}") from exc

        return self._handle_response(resp, "GET", path)

    def post(self, path: str, headers: Dict[str, str], payload: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            resp = self._session.post(url, json=payload, headers=headers, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.error("POST %s failed: %s", path, exc)
            raise TransportError(f"POST {path}: network error – {exc}") from exc

        return self._handle_response(resp, "POST", path)

    @staticmethod
    def _handle_response(resp: requests.Response, method: str, path: str) -> Dict[str, Any]:
        """Normalise a Daraja response into the envelope shape."""
        try:
            data = resp.json()
        except ValueError as exc:
            logger.error("%s %s HTTP %s: body is not JSON", method, path, resp.status_code)
            raise TransportError(
                f"{method} response could not be parsed.", response=resp
            ) from exc

        if not isinstance(data, dict):
            raise TransportError(
                f"{method} response is not a JSON object.", response=resp
            )

        logger.debug("%s %s HTTP %s", method, path, resp.status_code)

        return {
            "success": resp.ok,
            "status":  resp.status_code,
            **data,
        }
