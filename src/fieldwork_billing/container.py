"""Dependency injection container for Fieldwork Billing.

Builds the storage, document store and conversion service from settings and
hands the same instances to every caller in the process.

Usage:
    from fieldwork_billing.container import Container, get_container

    container = get_container()
    store = container.document_store
    converter = container.conversion_service
"""

from functools import cached_property, lru_cache
from typing import TYPE_CHECKING

from fieldwork_billing.config import Settings, get_settings
from fieldwork_billing.logging_config import get_logger

if TYPE_CHECKING:
    from fieldwork_billing.repositories.sqlite import (
        SQLiteDatabase,
        SQLiteDocumentRepository,
    )
    from fieldwork_billing.services.conversion import ConversionService
    from fieldwork_billing.services.document_store import DocumentStore

logger = get_logger(__name__)


class Container:
    """Lazily built application services.

    The container can be configured with custom settings for testing:

        test_settings = Settings(sqlite_path=":memory:")
        container = Container(settings=test_settings)
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()
        logger.debug(
            "container_created",
            sqlite_path=str(self._settings.sqlite_path),
            environment=self._settings.environment.value,
        )

    @property
    def settings(self) -> Settings:
        return self._settings

    @cached_property
    def database(self) -> "SQLiteDatabase":
        """SQLite database, initialized on first access."""
        from fieldwork_billing.repositories.sqlite import SQLiteDatabase

        db_path = str(self._settings.sqlite_path)
        logger.info("initializing_sqlite_database", path=db_path)

        # API handlers run on worker threads; DocumentStore.lock serializes them.
        db = SQLiteDatabase(db_path, check_same_thread=False)
        db.initialize()
        return db

    @cached_property
    def document_repository(self) -> "SQLiteDocumentRepository":
        from fieldwork_billing.repositories.sqlite import SQLiteDocumentRepository

        return SQLiteDocumentRepository(self.database)

    @cached_property
    def document_store(self) -> "DocumentStore":
        """Document store loaded from the repository."""
        from fieldwork_billing.services.document_store import DocumentStore

        return DocumentStore(
            repository=self.document_repository,
            settings=self._settings,
            number_sequence=self.document_repository,
        )

    @cached_property
    def conversion_service(self) -> "ConversionService":
        from fieldwork_billing.services.conversion import ConversionService

        return ConversionService(self.document_store, settings=self._settings)

    def close(self) -> None:
        """Close all resources held by the container.

        Should be called during application shutdown.
        """
        if "database" in self.__dict__:
            logger.info("closing_database_connection")
            self.database.close()

    def __enter__(self) -> "Container":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


@lru_cache
def get_container() -> Container:
    """Get the global container singleton.

    For testing, create a Container directly with custom settings instead
    of using this function.
    """
    return Container()


def reset_container() -> None:
    """Reset the global container, closing its resources."""
    if get_container.cache_info().currsize:
        get_container().close()
    get_container.cache_clear()


# FastAPI dependency functions
def get_document_store() -> "DocumentStore":
    """FastAPI dependency for the document store."""
    return get_container().document_store


def get_conversion_service() -> "ConversionService":
    """FastAPI dependency for the conversion service."""
    return get_container().conversion_service
