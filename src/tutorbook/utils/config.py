"""
Configuration management with environment variables.

Settings are read from the environment (and a ``.env`` file when
present) and validated before the client talks to the API.
"""

import os
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from dotenv import load_dotenv


DEFAULT_API_URL = "http://localhost:8080/api/v1"


class SecureString:
    """
    Wrapper for sensitive strings that prevents accidental exposure.

    Used for the session cookie so it never shows up in logs or
    tracebacks.

    Examples:
        >>> cookie = SecureString("abc123")
        >>> str(cookie)
        '********'
        >>> cookie.get_value()
        'abc123'
    """

    def __init__(self, value: str):
        self._value = value

    def get_value(self) -> str:
        """
        Get the wrapped value.

        Warning:
            Only pass the result straight to the HTTP layer. Never log it.
        """
        return self._value

    def __str__(self) -> str:
        return "********"

    def __repr__(self) -> str:
        return "SecureString(********)"

    def __eq__(self, other) -> bool:
        if isinstance(other, SecureString):
            return self._value == other._value
        return False

    def __bool__(self) -> bool:
        return bool(self._value)


class Config:
    """
    Application configuration manager.

    Attributes:
        api_url: Base URL of the REST API (including ``/api/v1``)
        session_cookie: Value of the ``session`` cookie
        request_timeout: Per-request timeout in seconds
        autosave_delay: Autosave debounce in seconds
        autosave_max_retries: Autosave attempts before giving up
        max_workers: Thread pool size for parallel loads
        output_dir: Directory for exports and log files
        log_level: Logging level name

    Examples:
        >>> config = Config()
        >>> config.validate()
        True
        >>> config.api_url
        'http://localhost:8080/api/v1'
    """

    VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

    @staticmethod
    def _validate_url(url: str, name: str) -> str:
        """
        Validate URL format and scheme.

        Args:
            url: URL to validate
            name: Variable name for error message

        Returns:
            URL without trailing slash

        Raises:
            ValueError: If URL is invalid
        """
        parsed = urlparse(url)

        if not parsed.scheme:
            raise ValueError(f"{name} must include URL scheme (http/https)")

        if parsed.scheme not in ["http", "https"]:
            raise ValueError(f"{name} must use http or https scheme, got: {parsed.scheme}")

        if not parsed.netloc:
            raise ValueError(f"{name} must have a valid host")

        return url.rstrip("/")

    def __init__(self):
        """Load configuration from the environment."""
        load_dotenv()

        url = os.getenv("TUTORBOOK_API_URL", DEFAULT_API_URL)
        self._api_url = self._validate_url(url, "TUTORBOOK_API_URL")

        cookie = os.getenv("TUTORBOOK_SESSION_COOKIE")
        self._session_cookie = SecureString(cookie) if cookie else None

        self._request_timeout = float(os.getenv("TUTORBOOK_REQUEST_TIMEOUT", "30"))
        self._autosave_delay_ms = int(os.getenv("TUTORBOOK_AUTOSAVE_DELAY_MS", "500"))
        self._autosave_max_retries = int(os.getenv("TUTORBOOK_AUTOSAVE_MAX_RETRIES", "3"))
        self._max_workers = int(os.getenv("TUTORBOOK_MAX_WORKERS", "4"))

        self._output_dir = Path(os.getenv("OUTPUT_DIR", "output"))
        self._log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    @property
    def api_url(self) -> str:
        """Get the API base URL."""
        return self._api_url

    @property
    def session_cookie(self) -> Optional[SecureString]:
        """
        Get the session cookie (wrapped in SecureString).

        Returns:
            SecureString with the cookie value, or None if not set
        """
        return self._session_cookie

    @property
    def request_timeout(self) -> float:
        return self._request_timeout

    @property
    def autosave_delay(self) -> float:
        """Get the autosave debounce in seconds."""
        return self._autosave_delay_ms / 1000

    @property
    def autosave_max_retries(self) -> int:
        return self._autosave_max_retries

    @property
    def max_workers(self) -> int:
        return self._max_workers

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    @property
    def log_level(self) -> str:
        return self._log_level

    def validate(self) -> bool:
        """
        Validate configuration values.

        Returns:
            True if configuration is valid

        Raises:
            ValueError: Listing every invalid setting
        """
        errors = []

        if self._request_timeout <= 0:
            errors.append("TUTORBOOK_REQUEST_TIMEOUT must be positive")

        if self._autosave_delay_ms < 0:
            errors.append("TUTORBOOK_AUTOSAVE_DELAY_MS must not be negative")

        if self._autosave_max_retries < 1:
            errors.append("TUTORBOOK_AUTOSAVE_MAX_RETRIES must be at least 1")

        if self._max_workers < 1:
            errors.append("TUTORBOOK_MAX_WORKERS must be at least 1")

        if self._log_level not in self.VALID_LOG_LEVELS:
            errors.append(
                f"LOG_LEVEL must be one of: {', '.join(self.VALID_LOG_LEVELS)}"
            )

        if errors:
            error_msg = "Configuration validation failed:\n  - " + "\n  - ".join(errors)
            raise ValueError(error_msg)

        return True

    def create_output_directories(self):
        """Create export and log directories if they don't exist."""
        for directory in [self.output_dir / "logs", self.output_dir / "exports"]:
            directory.mkdir(parents=True, exist_ok=True)


# Singleton instance
config = Config()
