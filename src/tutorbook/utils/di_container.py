"""
Dependency Injection Container.

This module provides a simple DI container that wires the API client,
the resource classes and the services for the CLI.
"""

import logging
from typing import Dict, Type, Callable, Any


logger = logging.getLogger(__name__)


class DIContainer:
    """
    Simple dependency injection container.

    Supports:
    - Service registration with factory functions
    - Singleton pattern for shared instances
    - Clear error messages for missing services

    Examples:
        >>> container = DIContainer()
        >>> container.register(Config, lambda: Config(), singleton=True)
        >>> container.register(
        ...     ApiClient,
        ...     lambda: ApiClient(container.resolve(Config).api_url),
        ...     singleton=True
        ... )
        >>> client = container.resolve(ApiClient)
    """

    def __init__(self):
        self._services: Dict[Type, Callable] = {}
        self._singletons: Dict[Type, Any] = {}
        self._singleton_flags: Dict[Type, bool] = {}

        logger.debug("DI Container initialized")

    def register(
        self,
        interface: Type,
        implementation: Callable,
        singleton: bool = False
    ):
        """
        Register a service in the container.

        Args:
            interface: Service type
            implementation: Factory function that creates the service
            singleton: Whether to create a single shared instance
        """
        self._services[interface] = implementation
        self._singleton_flags[interface] = singleton

        if singleton:
            self._singletons[interface] = None  # Lazy initialization

        logger.debug(
            f"Registered service: {interface.__name__} "
            f"(singleton={singleton})"
        )

    def resolve(self, interface: Type) -> Any:
        """
        Resolve a service from the container.

        Raises:
            ValueError: If service is not registered
        """
        if interface not in self._services:
            raise ValueError(
                f"Service not registered: {interface.__name__}. "
                f"Available services: {', '.join(s.__name__ for s in self._services.keys())}"
            )

        if self._singleton_flags.get(interface, False):
            if self._singletons[interface] is None:
                logger.debug(f"Creating singleton instance: {interface.__name__}")
                self._singletons[interface] = self._services[interface]()
            return self._singletons[interface]

        logger.debug(f"Creating transient instance: {interface.__name__}")
        return self._services[interface]()

    def is_registered(self, interface: Type) -> bool:
        return interface in self._services

    def clear(self):
        """Close the shared API client, then drop every registration."""
        from ..api.client import ApiClient

        client = self._singletons.get(ApiClient)
        if client is not None:
            client.close()

        self._services.clear()
        self._singletons.clear()
        self._singleton_flags.clear()
        logger.debug("DI Container cleared")

    def get_registered_services(self) -> list:
        return [service.__name__ for service in self._services.keys()]


def configure_default_services(container: DIContainer, app_config=None):
    """
    Register the client, every resource class and the services.

    Resources and services share one ApiClient and one
    NotificationCenter.

    Args:
        container: DI container to configure
        app_config: Config to use (defaults to the module singleton)

    Examples:
        >>> container = DIContainer()
        >>> configure_default_services(container)
        >>> bookings = container.resolve(BookingService)
    """
    from .config import Config, config
    from .logger import setup_logger
    from ..api.bookings import BookingsAPI
    from ..api.broadcasts import BroadcastsAPI
    from ..api.client import ApiClient
    from ..api.credits import CreditsAPI
    from ..api.homework import HomeworkAPI
    from ..api.lessons import LessonsAPI
    from ..api.payments import PaymentsAPI
    from ..api.telegram import TelegramAPI
    from ..api.templates import TemplatesAPI
    from ..api.users import UsersAPI
    from ..services.autosave import AutosaverFactory
    from ..services.bookings import BookingService
    from ..services.broadcasts import BroadcastStore
    from ..services.lessons import LessonDashboardLoader, LessonEditorLoader
    from ..services.notifications import NotificationCenter
    from ..services.templates import TemplateApplyService

    settings = app_config if app_config is not None else config

    # Singleton services
    container.register(Config, lambda: settings, singleton=True)

    container.register(
        logging.Logger,
        lambda: setup_logger(
            "tutorbook",
            level=getattr(logging, settings.log_level, logging.INFO)
        ),
        singleton=True
    )

    container.register(
        ApiClient,
        lambda: ApiClient(
            settings.api_url,
            session_cookie=settings.session_cookie,
            timeout=settings.request_timeout,
        ),
        singleton=True
    )
    container.register(NotificationCenter, NotificationCenter, singleton=True)

    for resource in (UsersAPI, LessonsAPI, BookingsAPI, CreditsAPI, TemplatesAPI,
                     TelegramAPI, BroadcastsAPI, HomeworkAPI, PaymentsAPI):
        container.register(
            resource,
            lambda resource=resource: resource(container.resolve(ApiClient)),
            singleton=True
        )

    container.register(
        BookingService,
        lambda: BookingService(
            container.resolve(BookingsAPI),
            container.resolve(CreditsAPI),
            container.resolve(NotificationCenter),
        ),
        singleton=True
    )
    container.register(
        TemplateApplyService,
        lambda: TemplateApplyService(
            container.resolve(TemplatesAPI),
            container.resolve(BookingsAPI),
            container.resolve(CreditsAPI),
            container.resolve(NotificationCenter),
            max_workers=settings.max_workers,
        ),
        singleton=True
    )
    container.register(
        LessonEditorLoader,
        lambda: LessonEditorLoader(
            container.resolve(UsersAPI),
            container.resolve(BookingsAPI),
            container.resolve(CreditsAPI),
            container.resolve(NotificationCenter),
            max_workers=settings.max_workers,
        )
    )
    container.register(
        LessonDashboardLoader,
        lambda: LessonDashboardLoader(
            container.resolve(LessonsAPI),
            container.resolve(UsersAPI),
            container.resolve(NotificationCenter),
            max_workers=settings.max_workers,
        )
    )
    container.register(
        AutosaverFactory,
        lambda: AutosaverFactory(delay=settings.autosave_delay,
                                 max_retries=settings.autosave_max_retries),
        singleton=True
    )
    # Transient: a store is closed together with the screen that owns it
    container.register(
        BroadcastStore,
        lambda: BroadcastStore(container.resolve(BroadcastsAPI),
                               container.resolve(NotificationCenter))
    )

    logger.info("Default services configured")
