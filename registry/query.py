"""
Spec Query Facade.

Read-only projection of stored spec records into their spec
documents. A get call either returns one spec per requested id,
in request order, or fails as a whole with RetrievalError.
Listing has no pagination.
"""

import logging
from typing import Dict, List, Optional, Sequence, Type

from pydantic import BaseModel
from sqlalchemy.orm import Session

from core.exceptions import RetrievalError
from specs.schemas import (
    EntitySpec,
    FeatureGroupSpec,
    FeatureSpec,
    SpecKind,
    StorageSpec,
)
from storage.models.base import SpecRecordMixin
from storage.repositories.exceptions import RecordNotFoundError, RepositoryException
from storage.store import SpecStore

logger = logging.getLogger(__name__)


SPEC_TYPES: Dict[SpecKind, Type[BaseModel]] = {
    SpecKind.ENTITY: EntitySpec,
    SpecKind.FEATURE: FeatureSpec,
    SpecKind.FEATURE_GROUP: FeatureGroupSpec,
    SpecKind.STORAGE: StorageSpec,
}


def to_spec(kind: SpecKind, record: SpecRecordMixin) -> BaseModel:
    """Rebuild the registered spec document from a stored record."""
    return SPEC_TYPES[kind].model_validate(record.spec)


class QueryFacade:
    """Read side of the registry. Never mutates state."""

    def __init__(self, session: Session):
        self.store = SpecStore(session)

    # ---------------------------------------------------------
    # GENERIC
    # ---------------------------------------------------------

    def get(self, kind: SpecKind, ids: Sequence[str]) -> List[BaseModel]:
        kind = SpecKind(kind)
        try:
            records = self.store.get_many(kind, ids)
        except RecordNotFoundError as e:
            logger.error(f"Error in get {kind.value}: {e}")
            raise RetrievalError(
                f"{kind.value} {e.record_id!r} not found",
                kind=kind.value,
                record_id=str(e.record_id),
                cause=e,
            ) from e
        except RepositoryException as e:
            logger.error(f"Error in get {kind.value}: {e}")
            raise RetrievalError(
                f"Unable to retrieve {kind.value} specs",
                kind=kind.value,
                cause=e,
            ) from e
        return [to_spec(kind, record) for record in records]

    def list(self, kind: SpecKind) -> List[BaseModel]:
        kind = SpecKind(kind)
        try:
            records = self.store.list_all(kind)
        except RepositoryException as e:
            logger.error(f"Error in list {kind.value}: {e}")
            raise RetrievalError(
                f"Unable to list {kind.value} specs",
                kind=kind.value,
                cause=e,
            ) from e
        return [to_spec(kind, record) for record in records]

    # ---------------------------------------------------------
    # PER KIND
    # ---------------------------------------------------------

    def get_entities(self, ids: Sequence[str]) -> List[EntitySpec]:
        return self.get(SpecKind.ENTITY, ids)

    def list_entities(self) -> List[EntitySpec]:
        return self.list(SpecKind.ENTITY)

    def get_features(self, ids: Sequence[str]) -> List[FeatureSpec]:
        return self.get(SpecKind.FEATURE, ids)

    def list_features(self, entity: Optional[str] = None) -> List[FeatureSpec]:
        """All registered features, or only those owned by entity."""
        if entity is None:
            return self.list(SpecKind.FEATURE)
        try:
            records = self.store.features.list_by_entity(entity)
        except RepositoryException as e:
            logger.error(f"Error in list features of entity {entity!r}: {e}")
            raise RetrievalError(
                f"Unable to list features of entity {entity!r}",
                kind=SpecKind.FEATURE.value,
                cause=e,
            ) from e
        return [to_spec(SpecKind.FEATURE, record) for record in records]

    def get_feature_groups(self, ids: Sequence[str]) -> List[FeatureGroupSpec]:
        return self.get(SpecKind.FEATURE_GROUP, ids)

    def list_feature_groups(self) -> List[FeatureGroupSpec]:
        return self.list(SpecKind.FEATURE_GROUP)

    def get_storage(self, ids: Sequence[str]) -> List[StorageSpec]:
        return self.get(SpecKind.STORAGE, ids)

    def list_storage(self) -> List[StorageSpec]:
        return self.list(SpecKind.STORAGE)
