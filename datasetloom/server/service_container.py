"""
Service container for dependency injection and lifecycle management.

Builds the connection pool and every service on top of it in dependency
order, and tears them down in reverse order on shutdown.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import asyncpg

from ..config.settings import Settings
from ..exceptions import DatasetLoomError
from ..export import DatasetExporter, RoleMapping
from ..services import ChatService
from ..storage.database import SCHEMA_PATH, PostgresChatStore
from ..storage.pagination import ChatPaginator
from ..utils.logging import log_event


@dataclass
class ServiceConfig:
    """
    Configuration for all core services.

    Keeps the database DSN next to the full settings object so the
    container never reads the environment itself.
    """

    database_url: str
    settings: Settings

    @classmethod
    def from_settings(cls, settings: Settings) -> "ServiceConfig":
        return cls(database_url=settings.database_url, settings=settings)


class ServiceInitializationError(Exception):
    """Raised when service initialization fails."""

    pass


class ServiceContainer:
    """
    Container for core services.

    Manages the lifecycle of:
    - PostgreSQL connection pool
    - Chat record store
    - Pagination engine and chat service
    - Dataset exporter

    Usage:
        container = ServiceContainer(ServiceConfig.from_settings(settings))
        await container.initialize()
        page = await container.chat_service.list_chats(...)
        await container.cleanup()

    Or use as async context manager:
        async with ServiceContainer(config) as container:
            ...
    """

    def __init__(self, config: ServiceConfig):
        """
        Initialize container with configuration.

        Args:
            config: Service configuration
        """
        self.config = config
        self._initialized = False

        self.db_pool: Optional[asyncpg.Pool] = None
        self.store: Optional[PostgresChatStore] = None
        self.paginator: Optional[ChatPaginator] = None
        self.chat_service: Optional[ChatService] = None
        self.exporter: Optional[DatasetExporter] = None

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """
        Initialize all services in dependency order.

        Raises:
            ServiceInitializationError: If any service fails to initialize
        """
        if self._initialized:
            log_event("service_container_already_initialized", level=logging.WARNING)
            return

        try:
            log_event(
                "service_container_init_start",
                {"database_url": self._mask_db_password(self.config.database_url)},
            )

            await self._init_database()
            await self._init_store()
            self._init_chat_service()
            self._init_exporter()

            self._initialized = True

            log_event(
                "service_ready",
                {"services": ["database", "store", "chat_service", "exporter"]},
            )

        except ServiceInitializationError as e:
            log_event(
                "service_container_init_failed",
                {"error": str(e)},
                level=logging.ERROR,
            )
            await self.cleanup()
            raise

    async def cleanup(self) -> None:
        """Release the pool and drop service references."""
        self.exporter = None
        self.chat_service = None
        self.paginator = None
        self.store = None

        if self.db_pool:
            pool, self.db_pool = self.db_pool, None
            try:
                await pool.close()
                log_event("database_pool_cleaned_up")
            except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
                log_event(
                    "database_cleanup_error",
                    {"error": str(e), "error_type": type(e).__name__},
                    level=logging.WARNING,
                )

        self._initialized = False

    async def __aenter__(self):
        """Async context manager entry."""
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.cleanup()
        return False

    async def _init_database(self) -> None:
        """Create the asyncpg pool and check it can serve a query."""
        settings = self.config.settings
        try:
            self.db_pool = await asyncpg.create_pool(
                self.config.database_url,
                min_size=settings.db_pool_min_size,
                max_size=settings.db_pool_max_size,
                command_timeout=settings.db_command_timeout,
                server_settings={
                    "application_name": "datasetloom",
                    "timezone": "UTC",
                },
            )

            async with self.db_pool.acquire() as conn:
                version = await conn.fetchval("SELECT version()")

            log_event(
                "database_initialized",
                {
                    "url": self._mask_db_password(self.config.database_url),
                    "pool_min_size": settings.db_pool_min_size,
                    "pool_max_size": settings.db_pool_max_size,
                    "postgres_version": version.split(",")[0] if version else "unknown",
                },
            )

        except asyncpg.InvalidCatalogNameError:
            raise ServiceInitializationError(
                "Database does not exist. Create it before starting the service."
            ) from None
        except asyncpg.InvalidPasswordError:
            raise ServiceInitializationError(
                "Invalid database credentials. Check DATASETLOOM_DATABASE_URL."
            ) from None
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            raise ServiceInitializationError(
                f"Failed to initialize database pool: {str(e)}"
            ) from e

    async def _init_store(self) -> None:
        if not self.db_pool:
            raise ServiceInitializationError(
                "Database pool must be initialized before the store"
            )

        self.store = PostgresChatStore(self.db_pool)

        if self.config.settings.apply_schema_on_startup:
            try:
                await self.store.apply_schema(SCHEMA_PATH)
            except (DatasetLoomError, OSError) as e:
                raise ServiceInitializationError(
                    f"Failed to apply schema: {str(e)}"
                ) from e

    def _init_chat_service(self) -> None:
        self.paginator = ChatPaginator(
            self.store, max_page_size=self.config.settings.max_page_size
        )
        self.chat_service = ChatService(self.store, paginator=self.paginator)

    def _init_exporter(self) -> None:
        settings = self.config.settings
        self.exporter = DatasetExporter(
            self.store,
            export_dir=settings.export_dir,
            role_mapping=RoleMapping(
                excluded_roles=frozenset(settings.export_excluded_roles)
            ),
            compression_level=settings.export_compression_level,
        )

    @staticmethod
    def _mask_db_password(url: str) -> str:
        """Hide the password part of a DSN for logging."""
        if "@" not in url or "://" not in url:
            return url

        scheme, rest = url.split("://", 1)
        credentials, host = rest.rsplit("@", 1)
        if ":" not in credentials:
            return url

        user = credentials.split(":", 1)[0]
        return f"{scheme}://{user}:****@{host}"
