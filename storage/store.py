"""
Storage - Spec Store.

============================================================
RESPONSIBILITY
============================================================
Narrow keyed contract over the spec repositories:

    put(kind, id, spec)      upsert, stamps created/last-updated
    get(kind, id)            RecordNotFoundError if absent
    get_many(kind, ids)      request order, fails on any miss
    list_all(kind)           every registered record
    exists(kind, id)

Every component reaches spec records through this class. The
store imposes no locking of its own; the database serializes
writes to the same key.

============================================================
"""

import logging
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel
from sqlalchemy.orm import Session

from core.clock import ClockProtocol, SystemClock
from specs.schemas import SpecKind
from storage.models.base import Base
from storage.repositories.specs import (
    EntityRepository,
    FeatureGroupRepository,
    FeatureRepository,
    SpecRepository,
    StorageRepository,
)


logger = logging.getLogger(__name__)


class SpecStore:
    """Keyed storage of Entity, Feature, FeatureGroup and Storage records."""

    def __init__(self, session: Session, clock: Optional[ClockProtocol] = None) -> None:
        self._session = session
        self._clock = clock or SystemClock()
        self._repositories: Dict[SpecKind, SpecRepository] = {
            SpecKind.ENTITY: EntityRepository(session),
            SpecKind.FEATURE: FeatureRepository(session),
            SpecKind.FEATURE_GROUP: FeatureGroupRepository(session),
            SpecKind.STORAGE: StorageRepository(session),
        }

    @property
    def session(self) -> Session:
        return self._session

    @property
    def clock(self) -> ClockProtocol:
        return self._clock

    def repository(self, kind: SpecKind) -> SpecRepository:
        return self._repositories[SpecKind(kind)]

    @property
    def entities(self) -> EntityRepository:
        return self._repositories[SpecKind.ENTITY]

    @property
    def features(self) -> FeatureRepository:
        return self._repositories[SpecKind.FEATURE]

    def put(self, kind: SpecKind, record_id: str, spec: BaseModel) -> Base:
        record = self.repository(kind).upsert(record_id, spec, self._clock.now())
        logger.debug(f"Stored {SpecKind(kind).value} {record_id!r}")
        return record

    def get(self, kind: SpecKind, record_id: str) -> Base:
        return self.repository(kind).get(record_id)

    def get_many(self, kind: SpecKind, record_ids: Sequence[str]) -> List[Base]:
        return self.repository(kind).get_many(list(record_ids))

    def list_all(self, kind: SpecKind) -> List[Base]:
        return self.repository(kind).list_registered()

    def exists(self, kind: SpecKind, record_id: str) -> bool:
        return self.repository(kind).exists(record_id)
