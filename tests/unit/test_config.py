"""
Unit tests for Config, SecureString and the DI container.
"""

import logging
from unittest.mock import Mock

import pytest

from tutorbook.api.bookings import BookingsAPI
from tutorbook.api.client import ApiClient
from tutorbook.services.autosave import AutosaverFactory
from tutorbook.services.bookings import BookingService
from tutorbook.services.broadcasts import BroadcastStore
from tutorbook.services.notifications import NotificationCenter
from tutorbook.utils.config import DEFAULT_API_URL, Config, SecureString
from tutorbook.utils.di_container import DIContainer, configure_default_services


ENV_VARS = [
    "TUTORBOOK_API_URL",
    "TUTORBOOK_SESSION_COOKIE",
    "TUTORBOOK_REQUEST_TIMEOUT",
    "TUTORBOOK_AUTOSAVE_DELAY_MS",
    "TUTORBOOK_AUTOSAVE_MAX_RETRIES",
    "TUTORBOOK_MAX_WORKERS",
    "LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch):
    """Environment without any tutorbook settings."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestSecureString:
    """Test suite for SecureString."""

    def test_masked(self):
        """Test the value never shows in str or repr."""
        secret = SecureString("session-abc")

        assert str(secret) == "********"
        assert "session-abc" not in repr(secret)
        assert secret.get_value() == "session-abc"

    def test_equality_and_truthiness(self):
        """Test comparison and bool."""
        assert SecureString("a") == SecureString("a")
        assert SecureString("a") != "a"
        assert not SecureString("")


class TestConfig:
    """Test suite for Config."""

    def test_defaults(self, clean_env):
        """Test default configuration values."""
        config = Config()

        assert config.api_url == DEFAULT_API_URL
        assert config.session_cookie is None
        assert config.request_timeout == 30
        assert config.autosave_delay == 0.5
        assert config.autosave_max_retries == 3
        assert config.max_workers == 4
        assert config.log_level == "INFO"
        assert config.validate()

    def test_environment_overrides(self, clean_env):
        """Test values from the environment."""
        clean_env.setenv("TUTORBOOK_API_URL", "https://school.example.com/api/v1/")
        clean_env.setenv("TUTORBOOK_SESSION_COOKIE", "cookie-value")
        clean_env.setenv("TUTORBOOK_AUTOSAVE_DELAY_MS", "1500")
        clean_env.setenv("LOG_LEVEL", "debug")

        config = Config()

        assert config.api_url == "https://school.example.com/api/v1"
        assert config.session_cookie.get_value() == "cookie-value"
        assert config.autosave_delay == 1.5
        assert config.log_level == "DEBUG"

    def test_invalid_url(self, clean_env):
        """Test URL without scheme is rejected."""
        clean_env.setenv("TUTORBOOK_API_URL", "localhost:8080")

        with pytest.raises(ValueError):
            Config()

    def test_validate_lists_errors(self, clean_env):
        """Test validation reports every invalid setting."""
        clean_env.setenv("TUTORBOOK_MAX_WORKERS", "0")
        clean_env.setenv("LOG_LEVEL", "LOUD")

        with pytest.raises(ValueError) as exc_info:
            Config().validate()

        message = str(exc_info.value)
        assert "TUTORBOOK_MAX_WORKERS must be at least 1" in message
        assert "LOG_LEVEL must be one of" in message


class TestDIContainer:
    """Test suite for DIContainer."""

    def test_singleton_and_transient(self):
        """Test singletons are shared and transients are not."""
        container = DIContainer()
        container.register(NotificationCenter, NotificationCenter, singleton=True)
        container.register(list, list)

        assert container.resolve(NotificationCenter) is container.resolve(NotificationCenter)
        assert container.resolve(list) is not container.resolve(list)

    def test_missing_service(self):
        """Test resolving an unregistered service."""
        container = DIContainer()
        container.register(NotificationCenter, NotificationCenter)

        with pytest.raises(ValueError, match="Service not registered: dict"):
            container.resolve(dict)

    def test_clear_closes_client(self):
        """Test clear closes the shared API client."""
        container = DIContainer()
        client = Mock()
        container.register(ApiClient, lambda: client, singleton=True)
        container.resolve(ApiClient)

        container.clear()

        client.close.assert_called_once()
        assert container.get_registered_services() == []

    def test_default_services(self, clean_env):
        """Test the default wiring shares client and notifications."""
        container = DIContainer()
        configure_default_services(container, Config())

        service = container.resolve(BookingService)

        assert isinstance(service.bookings, BookingsAPI)
        assert service.bookings.client is container.resolve(ApiClient)
        assert service.notifications is container.resolve(NotificationCenter)
        assert container.resolve(BroadcastStore) is not container.resolve(BroadcastStore)
        assert container.is_registered(logging.Logger)

        container.clear()

    def test_autosave_settings_reach_factory(self, clean_env):
        """Test autosavers are built with the configured delay and retries."""
        clean_env.setenv("TUTORBOOK_AUTOSAVE_DELAY_MS", "200")
        clean_env.setenv("TUTORBOOK_AUTOSAVE_MAX_RETRIES", "5")
        container = DIContainer()
        configure_default_services(container, Config())

        saver = container.resolve(AutosaverFactory).create(Mock())

        assert saver.delay == 0.2
        assert saver.max_retries == 5
        saver.close()
        container.clear()
