"""
Base Repository Class.

============================================================
PURPOSE
============================================================
Provides common functionality for all repositories including:
- Session injection
- Wrapping of SQLAlchemy errors in repository exceptions
- Common query helpers
- Per-repository logger

============================================================
USAGE
============================================================
class MyRepository(BaseRepository[MyModel]):
    def __init__(self, session: Session):
        super().__init__(session, MyModel, "MyRepository")

Repositories never commit; the caller owns the transaction
(see storage.database.unit_of_work).

============================================================
"""

import logging
from abc import ABC
from typing import Any, Dict, Generic, Iterable, List, Optional, Type, TypeVar

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import (
    IntegrityError as SQLAlchemyIntegrityError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.orm import Session

from storage.models.base import Base
from storage.repositories.exceptions import (
    ConnectionError,
    IntegrityError,
    QueryError,
    RecordNotFoundError,
)


T = TypeVar("T", bound=Base)

# Dialects with INSERT ... ON CONFLICT support
DIALECT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class BaseRepository(ABC, Generic[T]):
    """Abstract base class for all repositories."""

    def __init__(
        self,
        session: Session,
        model_class: Type[T],
        repository_name: str
    ) -> None:
        """
        Initialize the repository.

        Args:
            session: SQLAlchemy session (injected)
            model_class: The ORM model class this repository manages
            repository_name: Name for logging and error messages
        """
        self._session = session
        self._model_class = model_class
        self._repository_name = repository_name
        self._logger = logging.getLogger(f"repository.{repository_name}")

    @property
    def session(self) -> Session:
        return self._session

    @property
    def model_class(self) -> Type[T]:
        return self._model_class

    @property
    def repository_name(self) -> str:
        return self._repository_name

    # =========================================================
    # PROTECTED HELPER METHODS
    # =========================================================

    def _handle_db_error(
        self,
        error: Exception,
        operation: str,
        context: Optional[dict] = None
    ) -> None:
        """
        Wrap a database error in a repository exception.

        Raises:
            RepositoryException: Always
        """
        context = context or {}
        self._logger.error(
            f"Database error in {operation}: {error}",
            extra={"context": context},
        )

        if isinstance(error, OperationalError):
            raise ConnectionError(
                repository_name=self._repository_name,
                operation=operation,
                original_error=str(error)
            ) from error

        if isinstance(error, SQLAlchemyIntegrityError):
            raise IntegrityError(
                repository_name=self._repository_name,
                operation=operation,
                message=str(error.orig) if error.orig is not None else str(error)
            ) from error

        raise QueryError(
            repository_name=self._repository_name,
            operation=operation,
            original_error=str(error)
        ) from error

    def _add(self, entity: T) -> T:
        """Add an entity to the session and flush it."""
        try:
            self._session.add(entity)
            self._session.flush()
            self._logger.debug(f"Added entity: {entity}")
            return entity
        except SQLAlchemyError as e:
            self._handle_db_error(e, "add", {"entity": str(entity)})
            raise  # Never reached, but satisfies type checker

    def _flush(self, operation: str) -> None:
        try:
            self._session.flush()
        except SQLAlchemyError as e:
            self._handle_db_error(e, operation)
            raise

    def _delete(self, entity: T) -> None:
        try:
            self._session.delete(entity)
            self._session.flush()
            self._logger.debug(f"Deleted entity: {entity}")
        except SQLAlchemyError as e:
            self._handle_db_error(e, "delete", {"entity": str(entity)})
            raise

    def _get_by_id(self, record_id: Any) -> Optional[T]:
        """Get an entity by its primary key, or None."""
        try:
            return self._session.get(self._model_class, record_id)
        except SQLAlchemyError as e:
            self._handle_db_error(e, "get_by_id", {"id": str(record_id)})
            raise

    def _get_by_id_or_raise(self, record_id: Any, id_field: str = "id") -> T:
        """
        Get an entity by its primary key, raising if not found.

        Raises:
            RecordNotFoundError: If entity does not exist
        """
        entity = self._get_by_id(record_id)
        if entity is None:
            raise RecordNotFoundError(
                repository_name=self._repository_name,
                record_id=record_id,
                id_field=id_field
            )
        return entity

    def _execute_query(self, stmt: Any) -> List[T]:
        """Execute a select statement and return all scalar results."""
        try:
            result = self._session.execute(stmt)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            self._handle_db_error(e, "query")
            raise

    # =========================================================
    # ATOMIC INSERTS
    # =========================================================

    def _insert_statement(self, values: Dict[str, Any]) -> Any:
        """INSERT for the bound dialect, supporting ON CONFLICT."""
        dialect = self._session.get_bind().dialect.name
        insert = DIALECT_INSERTS.get(dialect)
        if insert is None:
            raise QueryError(
                repository_name=self._repository_name,
                operation="insert",
                original_error=f"Unsupported database dialect: {dialect}",
            )
        return insert(self._model_class.__table__).values(**values)

    def _insert_or_update(
        self,
        values: Dict[str, Any],
        key: str,
        update_columns: Iterable[str],
        operation: str,
    ) -> None:
        """
        INSERT ... ON CONFLICT (key) DO UPDATE in one statement.

        Concurrent writers of the same key serialize in the database;
        the last one to commit wins. Columns not in update_columns keep
        the value written by the first insert.
        """
        stmt = self._insert_statement(values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[key],
            set_={column: stmt.excluded[column] for column in update_columns},
        )
        try:
            self._session.execute(stmt)
        except SQLAlchemyError as e:
            self._handle_db_error(e, operation, {key: str(values.get(key))})
            raise

    def _insert_or_ignore(self, values: Dict[str, Any], key: str, operation: str) -> None:
        """INSERT ... ON CONFLICT (key) DO NOTHING."""
        stmt = self._insert_statement(values).on_conflict_do_nothing(index_elements=[key])
        try:
            self._session.execute(stmt)
        except SQLAlchemyError as e:
            self._handle_db_error(e, operation, {key: str(values.get(key))})
            raise

    def _reload(self, record_id: Any) -> Optional[T]:
        """Get by primary key, refreshing any copy held by the session."""
        try:
            return self._session.get(self._model_class, record_id, populate_existing=True)
        except SQLAlchemyError as e:
            self._handle_db_error(e, "reload", {"id": str(record_id)})
            raise
