"""
Shared HTTP client for the booking platform API.

This module provides ApiClient, the single place that:
- Builds URLs from the configured base URL
- Attaches the session cookie and CSRF token
- Unwraps the ``{"success": true, "data": ...}`` envelope
- Converts HTTP and network failures into APIError
- Honours cancellation through CancelToken
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, Optional

import requests

from .errors import (
    APIError,
    ErrorCode,
    NETWORK_ERROR_CODE,
    RequestCancelledError,
    extract_error_message,
)
from .session import SessionManager
from ..utils.config import SecureString, DEFAULT_API_URL


logger = logging.getLogger(__name__)


class CancelToken:
    """
    Cancellation flag for one or more requests.

    Cancelling does not interrupt a socket read in progress; the client
    checks the token before sending and after the response arrives,
    and discards the response if the token was cancelled meanwhile.

    Examples:
        >>> token = CancelToken()
        >>> token.cancel()
        >>> token.is_cancelled
        True
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self):
        """
        Raises:
            RequestCancelledError: If the token was cancelled
        """
        if self._event.is_set():
            raise RequestCancelledError()


def _clean_params(params: Optional[Dict[str, Any]]) -> Optional[Dict[str, str]]:
    """Drop None values and render booleans as ``true``/``false``."""
    if not params:
        return None

    cleaned = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            cleaned[key] = "true" if value else "false"
        else:
            cleaned[key] = str(value)
    return cleaned or None


class ApiClient:
    """
    HTTP client wrapping ``requests.Session``.

    Examples:
        >>> client = ApiClient("http://localhost:8080/api/v1",
        ...                    session_cookie=SecureString("cookie-value"))
        >>> lessons = client.get("/lessons", params={"available": True})
        >>> booking = client.post("/bookings", {"lesson_id": lessons[0]["id"]})
    """

    SESSION_COOKIE_NAME = "session"
    CSRF_HEADER = "X-CSRF-Token"

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        session_cookie: Optional[SecureString] = None,
        timeout: float = 30,
        http: Optional[requests.Session] = None,
        on_unauthorized: Optional[Callable[[str, str], None]] = None
    ):
        """
        Initialize ApiClient.

        Args:
            base_url: API base URL including the ``/api/v1`` prefix
            session_cookie: Value of the backend ``session`` cookie
            timeout: Per-request timeout in seconds
            http: Session to use (a new requests.Session by default)
            on_unauthorized: Called with (method, url) after a 401
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.http = http if http is not None else requests.Session()
        self.http.headers.update({"Accept": "application/json"})
        self.session = SessionManager()
        self.on_unauthorized = on_unauthorized

        if session_cookie:
            self.http.cookies.set(self.SESSION_COOKIE_NAME, session_cookie.get_value())

    def url_for(self, endpoint: str) -> str:
        return f"{self.base_url}/{endpoint.lstrip('/')}"

    # ---- HTTP verbs ----

    def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None,
            cancel_token: Optional[CancelToken] = None) -> Any:
        return self.request("GET", endpoint, params=params, cancel_token=cancel_token)

    def post(self, endpoint: str, body: Any = None, params: Optional[Dict[str, Any]] = None,
             files: Optional[Dict[str, Any]] = None,
             cancel_token: Optional[CancelToken] = None) -> Any:
        return self.request("POST", endpoint, params=params, json=body, files=files,
                            cancel_token=cancel_token)

    def put(self, endpoint: str, body: Any = None,
            cancel_token: Optional[CancelToken] = None) -> Any:
        return self.request("PUT", endpoint, json=body, cancel_token=cancel_token)

    def patch(self, endpoint: str, body: Any = None,
              cancel_token: Optional[CancelToken] = None) -> Any:
        return self.request("PATCH", endpoint, json=body, cancel_token=cancel_token)

    def delete(self, endpoint: str, params: Optional[Dict[str, Any]] = None,
               cancel_token: Optional[CancelToken] = None) -> Any:
        return self.request("DELETE", endpoint, params=params, cancel_token=cancel_token)

    # ---- CSRF ----

    def fetch_csrf_token(self) -> Optional[str]:
        """
        Fetch a CSRF token from ``GET /csrf-token`` and store it.

        Failures are logged; the caller proceeds without a token and the
        backend's answer decides what happens next.

        Returns:
            The new token, or None if it could not be fetched
        """
        url = self.url_for("/csrf-token")
        logger.debug(f"Fetching CSRF token from {url}")

        try:
            response = self.http.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Error fetching CSRF token: {e}")
            return None

        if not response.ok:
            logger.error(f"Failed to fetch CSRF token: HTTP {response.status_code}")
            return None

        try:
            payload = response.json()
        except ValueError:
            logger.error("CSRF token response is not JSON")
            return None

        data = payload.get("data") if isinstance(payload, dict) else None
        token = data.get("csrf_token") if isinstance(data, dict) else None
        if not (isinstance(payload, dict) and payload.get("success") and token):
            logger.error("Invalid CSRF token response format")
            return None

        self.session.set_csrf_token(token)
        return token

    # ---- Core request ----

    def request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        files: Optional[Dict[str, Any]] = None,
        form: Optional[Dict[str, Any]] = None,
        cancel_token: Optional[CancelToken] = None,
        _is_retry: bool = False
    ) -> Any:
        """
        Send a request and return the unwrapped response body.

        Args:
            method: HTTP method
            endpoint: Path relative to the base URL (e.g. ``/lessons``)
            params: Query parameters (None values are dropped)
            json: JSON body
            files: Multipart files (``{"file": (name, bytes, mime)}``)
            form: Multipart form fields sent alongside ``files``
            cancel_token: Token that can cancel the request

        Returns:
            ``data`` of a successful envelope, otherwise the raw JSON body
            (None for non-JSON responses)

        Raises:
            APIError: On HTTP errors (status >= 400) and network failures
            RequestCancelledError: If the token was cancelled
        """
        method = method.upper()
        url = self.url_for(endpoint)

        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        headers = self.session.csrf_header(method)
        kwargs: Dict[str, Any] = {
            "params": _clean_params(params),
            "headers": headers,
            "timeout": self.timeout,
        }
        if files:
            kwargs["files"] = files
            kwargs["data"] = form
        elif json is not None:
            kwargs["json"] = json

        logger.debug(f"API request: {method} {url} params={kwargs['params']}")
        started = time.monotonic()

        try:
            response = self.http.request(method, url, **kwargs)
        except requests.RequestException as e:
            duration = (time.monotonic() - started) * 1000
            if cancel_token is not None and cancel_token.is_cancelled:
                logger.debug(f"API request cancelled: {method} {url} ({duration:.0f}ms)")
                raise RequestCancelledError() from e
            logger.error(f"Network error: {method} {url} ({duration:.0f}ms): {e}")
            raise APIError(str(e) or "Network error occurred", 0, None,
                           code=NETWORK_ERROR_CODE) from e

        duration = (time.monotonic() - started) * 1000

        if cancel_token is not None and cancel_token.is_cancelled:
            logger.debug(f"API request cancelled: {method} {url} ({duration:.0f}ms)")
            raise RequestCancelledError()

        data = self._parse_body(response)

        csrf_from_header = response.headers.get(self.CSRF_HEADER)
        if csrf_from_header:
            self.session.set_csrf_token(csrf_from_header)

        logger.debug(
            f"API response: {response.status_code} {method} {url} ({duration:.0f}ms)"
        )

        if response.status_code == 401:
            return self._handle_unauthorized(method, url)

        if (response.status_code == 403 and not _is_retry
                and self._error_code(data) == ErrorCode.INVALID_CSRF.value):
            logger.warning("CSRF token invalid, refreshing and retrying request")
            self.fetch_csrf_token()
            return self.request(method, endpoint, params=params, json=json, files=files,
                                form=form, cancel_token=cancel_token, _is_retry=True)

        if not response.ok:
            message = extract_error_message(data, response.status_code)
            logger.error(
                f"API error: {method} {url} -> {response.status_code}: {message}"
            )
            raise APIError(message, response.status_code, data)

        self.session.mark_active()

        if isinstance(data, dict) and data.get("success") and "data" in data:
            return data["data"]
        return data

    def request_raw(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        cancel_token: Optional[CancelToken] = None
    ) -> requests.Response:
        """
        Send a request and return the raw response (for file downloads).

        Raises:
            APIError: On HTTP errors and network failures
        """
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        url = self.url_for(endpoint)
        try:
            response = self.http.request(
                method.upper(), url, params=_clean_params(params),
                headers=self.session.csrf_header(method), timeout=self.timeout
            )
        except requests.RequestException as e:
            raise APIError(str(e) or "Network error occurred", 0, None,
                           code=NETWORK_ERROR_CODE) from e

        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        if response.status_code == 401:
            self._handle_unauthorized(method.upper(), url)

        if not response.ok:
            data = self._parse_body(response)
            raise APIError(extract_error_message(data, response.status_code),
                           response.status_code, data)

        return response

    def close(self):
        """Close the underlying HTTP session."""
        self.http.close()

    # ---- Helpers ----

    @staticmethod
    def _parse_body(response: requests.Response) -> Any:
        content_type = response.headers.get("Content-Type", "")
        if "application/json" not in content_type:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise APIError("Invalid JSON in response", response.status_code, None) from e

    @staticmethod
    def _error_code(data: Any) -> Optional[str]:
        if isinstance(data, dict) and isinstance(data.get("error"), dict):
            return data["error"].get("code")
        return None

    def _handle_unauthorized(self, method: str, url: str):
        logger.error(f"API error: Unauthorized (401) {method} {url}")
        self.session.mark_unauthorized()

        if self.on_unauthorized is not None and not url.endswith("/auth/logout"):
            self.on_unauthorized(method, url)

        raise APIError("Unauthorized", 401, None, code=ErrorCode.UNAUTHORIZED.value)


class ResourceAPI:
    """Base class for resource wrappers sharing one ApiClient."""

    def __init__(self, client: ApiClient):
        self.client = client
