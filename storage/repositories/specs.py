"""
Spec Repositories.

============================================================
PURPOSE
============================================================
Keyed persistence for the four spec kinds. Each repository
upserts by natural id, reads by id / ids, and lists every
registered record.

============================================================
DATA LIFECYCLE
============================================================
- Mutability: REPLACE-IN-PLACE
- Re-registration overwrites the payload, keeps created_at,
  refreshes last_updated
- Placeholder rows (registered=False) anchor job associations
  and are invisible to every read below

============================================================
REPOSITORIES
============================================================
- EntityRepository
- FeatureRepository
- FeatureGroupRepository
- StorageRepository

============================================================
"""

from abc import abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.orm import Session

from specs.schemas import DataStores, EntitySpec, FeatureGroupSpec, FeatureSpec, StorageSpec
from storage.models.base import Base
from storage.models.specs import EntityInfo, FeatureGroupInfo, FeatureInfo, StorageInfo
from storage.repositories.base import BaseRepository
from storage.repositories.exceptions import RecordNotFoundError


S = TypeVar("S", bound=Base)


def _store_columns(stores: Optional[DataStores]) -> Dict[str, Optional[str]]:
    return {
        "serving_store_id": stores.serving.id if stores and stores.serving else None,
        "warehouse_store_id": stores.warehouse.id if stores and stores.warehouse else None,
    }


class SpecRepository(BaseRepository[S]):
    """
    Shared upsert/get/list logic for spec-backed records.

    Subclasses declare the primary key attribute and map a spec
    onto the lookup columns in _columns().
    """

    id_field: str = "id"

    def __init__(self, session: Session, model_class: Type[S], repository_name: str) -> None:
        super().__init__(session, model_class, repository_name)

    @property
    def _id_column(self) -> Any:
        return getattr(self._model_class, self.id_field)

    @abstractmethod
    def _columns(self, spec: BaseModel) -> Dict[str, Any]:
        """Lookup column values derived from a spec."""

    # =========================================================
    # WRITES
    # =========================================================

    def upsert(self, record_id: str, spec: BaseModel, now: datetime) -> S:
        """
        Insert or overwrite the record stored under record_id.

        A single INSERT ... ON CONFLICT DO UPDATE, so concurrent
        writers of one id never collide on the primary key.

        Args:
            record_id: Canonical id of the record
            spec: Full spec document to store
            now: Timestamp for created_at (insert) and last_updated

        Returns:
            The stored row
        """
        values = {
            self.id_field: record_id,
            **self._columns(spec),
            "spec": spec.model_dump(mode="json", by_alias=True),
            "registered": True,
            "created_at": now,
            "last_updated": now,
        }
        update_columns = [c for c in values if c not in (self.id_field, "created_at")]

        self._insert_or_update(values, self.id_field, update_columns, "upsert")
        self._logger.debug(f"Upserted {self.id_field}={record_id}")
        return self._reload(record_id)

    def _insert_placeholder(self, record_id: str, values: Dict[str, Any], now: datetime) -> S:
        """
        Insert an unregistered row unless one exists, then return
        whatever row holds the id.
        """
        values = {
            self.id_field: record_id,
            **values,
            "spec": {},
            "registered": False,
            "created_at": now,
            "last_updated": now,
        }
        self._insert_or_ignore(values, self.id_field, "create_placeholder")
        return self._reload(record_id)

    # =========================================================
    # READS
    # =========================================================

    def get(self, record_id: str) -> S:
        """
        Get a registered record.

        Raises:
            RecordNotFoundError: If absent or only a placeholder
        """
        row = self._get_by_id(record_id)
        if row is None or not row.registered:
            raise RecordNotFoundError(
                repository_name=self._repository_name,
                record_id=record_id,
                id_field=self.id_field,
            )
        return row

    def get_many(self, record_ids: Sequence[str]) -> List[S]:
        """
        Get registered records in request order.

        Fails on the first id that has no registered record; never
        returns a partial list. An empty request yields [].
        """
        if not record_ids:
            return []

        stmt = select(self._model_class).where(
            self._id_column.in_(set(record_ids)),
            self._model_class.registered.is_(True),
        )
        found = {getattr(row, self.id_field): row for row in self._execute_query(stmt)}

        records = []
        for record_id in record_ids:
            row = found.get(record_id)
            if row is None:
                raise RecordNotFoundError(
                    repository_name=self._repository_name,
                    record_id=record_id,
                    id_field=self.id_field,
                )
            records.append(row)
        return records

    def list_registered(self) -> List[S]:
        """All registered records, oldest first."""
        stmt = (
            select(self._model_class)
            .where(self._model_class.registered.is_(True))
            .order_by(self._model_class.created_at, self._id_column)
        )
        return self._execute_query(stmt)

    def exists(self, record_id: str) -> bool:
        row = self._get_by_id(record_id)
        return row is not None and row.registered

    def find(self, record_id: str) -> Optional[S]:
        """Get the row under record_id whether registered or placeholder."""
        return self._get_by_id(record_id)


class EntityRepository(SpecRepository[EntityInfo]):
    """Repository for entities, keyed by name."""

    id_field = "name"

    def __init__(self, session: Session) -> None:
        super().__init__(session, EntityInfo, "EntityRepository")

    def _columns(self, spec: EntitySpec) -> Dict[str, Any]:
        return {
            "description": spec.description,
            "tags": list(spec.tags),
        }

    def create_placeholder(self, name: str, now: datetime) -> EntityInfo:
        """Ensure an entity row exists; adds an unregistered one if needed."""
        row = self._insert_placeholder(name, {"description": "", "tags": []}, now)
        if not row.registered:
            self._logger.info(f"Using placeholder entity {name!r}")
        return row


class FeatureRepository(SpecRepository[FeatureInfo]):
    """Repository for features, keyed by "<entity>.<name>"."""

    def __init__(self, session: Session) -> None:
        super().__init__(session, FeatureInfo, "FeatureRepository")

    def _columns(self, spec: FeatureSpec) -> Dict[str, Any]:
        return {
            "name": spec.name,
            "entity_name": spec.entity,
            "owner": spec.owner,
            "description": spec.description,
            "uri": spec.uri,
            "value_type": spec.value_type.value,
            "group_id": spec.group or None,
            **_store_columns(spec.data_stores),
            "tags": list(spec.tags),
            "options": dict(spec.options),
        }

    def create_placeholder(
        self,
        feature_id: str,
        entity: EntityInfo,
        now: datetime,
    ) -> FeatureInfo:
        """Ensure a feature row owned by entity exists."""
        row = self._insert_placeholder(
            feature_id,
            {
                "name": feature_id.split(".", 1)[-1],
                "entity_name": entity.name,
                "value_type": "UNKNOWN",
            },
            now,
        )
        if not row.registered:
            self._logger.info(f"Using placeholder feature {feature_id!r}")
        return row

    def list_by_entity(self, entity_name: str) -> List[FeatureInfo]:
        """Registered features owned by an entity, oldest first."""
        stmt = (
            select(FeatureInfo)
            .where(
                FeatureInfo.entity_name == entity_name,
                FeatureInfo.registered.is_(True),
            )
            .order_by(FeatureInfo.created_at, FeatureInfo.id)
        )
        return self._execute_query(stmt)


class FeatureGroupRepository(SpecRepository[FeatureGroupInfo]):
    """Repository for feature groups."""

    def __init__(self, session: Session) -> None:
        super().__init__(session, FeatureGroupInfo, "FeatureGroupRepository")

    def _columns(self, spec: FeatureGroupSpec) -> Dict[str, Any]:
        return {
            "tags": list(spec.tags),
            "options": dict(spec.options),
            **_store_columns(spec.data_stores),
        }


class StorageRepository(SpecRepository[StorageInfo]):
    """Repository for storage targets."""

    def __init__(self, session: Session) -> None:
        super().__init__(session, StorageInfo, "StorageRepository")

    def _columns(self, spec: StorageSpec) -> Dict[str, Any]:
        return {
            "type": spec.type,
            "options": dict(spec.options),
        }
