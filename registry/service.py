"""
Spec Registry Service.

This service handles registration of every spec kind:
- Validating the submitted spec
- Checking that referenced records exist
- Deriving the canonical id
- Upserting the record (last writer wins)

Validation failures are bad requests and never reach the store.
Persistence failures surface as RegistrationError.
"""

import logging
from typing import Optional

from pydantic import BaseModel
from sqlalchemy.orm import Session

from core.clock import ClockProtocol
from core.config import RegistryConfig
from core.exceptions import RegistrationError, SpecValidationError
from specs.schemas import (
    EntitySpec,
    FeatureGroupSpec,
    FeatureSpec,
    SpecKind,
    StorageSpec,
)
from storage.database import unit_of_work
from storage.repositories.exceptions import RepositoryException
from storage.store import SpecStore
from validators.spec_validator import SpecValidator

logger = logging.getLogger(__name__)


# =============================================================
# CANONICAL IDS
# =============================================================

def feature_id_for(spec: FeatureSpec) -> str:
    """Features are identified by "<entity>.<name>"."""
    return f"{spec.entity}.{spec.name}"


# =============================================================
# REGISTRY SERVICE
# =============================================================

class SpecRegistry:
    """Registers entities, features, feature groups and storage."""

    def __init__(
        self,
        session: Session,
        validator: Optional[SpecValidator] = None,
        config: Optional[RegistryConfig] = None,
        clock: Optional[ClockProtocol] = None,
    ):
        self.config = config or RegistryConfig()
        self.session = session
        self.store = SpecStore(session, clock)
        self.validator = validator or SpecValidator(self.config.storage_types)

    # ---------------------------------------------------------
    # PUBLIC OPERATIONS
    # ---------------------------------------------------------

    def register_entity(self, spec: EntitySpec) -> str:
        """Register or overwrite an entity. Returns the entity name."""
        self.validator.validate(SpecKind.ENTITY, spec)
        return self._persist(SpecKind.ENTITY, spec.name, spec)

    def register_feature(self, spec: FeatureSpec) -> str:
        """
        Register or overwrite a feature. Returns the feature id.

        The owning entity must be registered; the group and any
        referenced storage must exist as well.
        """
        self.validator.validate(SpecKind.FEATURE, spec)
        self._check_feature_references(spec)
        return self._persist(SpecKind.FEATURE, feature_id_for(spec), spec)

    def register_feature_group(self, spec: FeatureGroupSpec) -> str:
        """Register or overwrite a feature group. Returns its id."""
        self.validator.validate(SpecKind.FEATURE_GROUP, spec)
        if spec.data_stores is not None:
            self._check_storage_exists(SpecKind.FEATURE_GROUP, spec.data_stores.store_ids())
        return self._persist(SpecKind.FEATURE_GROUP, spec.id, spec)

    def register_storage(self, spec: StorageSpec) -> str:
        """Register or overwrite a storage target. Returns its id."""
        self.validator.validate(SpecKind.STORAGE, spec)
        return self._persist(SpecKind.STORAGE, spec.id, spec)

    # ---------------------------------------------------------
    # REFERENTIAL CHECKS
    # ---------------------------------------------------------

    def _check_feature_references(self, spec: FeatureSpec) -> None:
        kind = SpecKind.FEATURE.value
        try:
            if not self.store.exists(SpecKind.ENTITY, spec.entity):
                raise SpecValidationError(
                    kind,
                    f"entity {spec.entity!r} is not registered",
                    field="entity",
                )
            if spec.group and not self.store.exists(SpecKind.FEATURE_GROUP, spec.group):
                raise SpecValidationError(
                    kind,
                    f"feature group {spec.group!r} is not registered",
                    field="group",
                )
        except RepositoryException as e:
            logger.error(f"Reference check failed for feature {feature_id_for(spec)!r}: {e}")
            raise RegistrationError(kind, feature_id_for(spec), cause=e) from e

        if spec.data_stores is not None:
            self._check_storage_exists(SpecKind.FEATURE, spec.data_stores.store_ids())

    def _check_storage_exists(self, kind: SpecKind, storage_ids) -> None:
        for storage_id in storage_ids:
            try:
                exists = self.store.exists(SpecKind.STORAGE, storage_id)
            except RepositoryException as e:
                logger.error(f"Storage lookup failed for {storage_id!r}: {e}")
                raise RegistrationError(kind.value, storage_id, cause=e) from e
            if not exists:
                raise SpecValidationError(
                    kind.value,
                    f"storage {storage_id!r} is not registered",
                    field="data_stores",
                )

    # ---------------------------------------------------------
    # PERSISTENCE
    # ---------------------------------------------------------

    def _persist(self, kind: SpecKind, record_id: str, spec: BaseModel) -> str:
        try:
            with unit_of_work(self.session):
                self.store.put(kind, record_id, spec)
        except RepositoryException as e:
            logger.error(f"Error registering {kind.value} {record_id!r}: {e}")
            raise RegistrationError(kind.value, record_id, cause=e) from e

        logger.info(f"Registered {kind.value}: id={record_id}")
        return record_id
