"""
Validators - Spec Validation.

============================================================
PURPOSE
============================================================
Structural and semantic checks run before any spec is stored.

VALIDATION RULES:
- Entity: name present, lower snake case
- Feature: id/name/entity/value type present, id == entity.name
- Feature group: id present, lower snake case
- Storage: id present, type supported
- Import: type present, at least one entity, every feature id
  belongs to a declared entity

CRITICAL PRINCIPLE:
    Validators are pure. They never read the store; checks that
    a referenced record exists belong to the registry.

============================================================
"""

import logging
import re
from typing import Callable, Dict, Iterable, Optional

from pydantic import BaseModel

from core.config import DEFAULT_STORAGE_TYPES
from core.exceptions import SpecValidationError
from specs.schemas import (
    EntitySpec,
    FeatureGroupSpec,
    FeatureSpec,
    ImportSpec,
    SpecKind,
    StorageSpec,
    ValueType,
)


logger = logging.getLogger(__name__)

LOWER_SNAKE_CASE = re.compile(r"^[a-z0-9_]+$")
STORAGE_ID = re.compile(r"^[A-Za-z0-9_\-]+$")


# ============================================================
# HELPERS
# ============================================================

def _require(kind: str, field: str, value: str) -> None:
    if not value:
        raise SpecValidationError(kind, f"{field} must be provided", field=field)


def _require_lower_snake_case(kind: str, field: str, value: str) -> None:
    _require(kind, field, value)
    if not LOWER_SNAKE_CASE.match(value):
        raise SpecValidationError(
            kind,
            f"{field} {value!r} must be lower snake case",
            field=field,
        )


# ============================================================
# PER-KIND VALIDATORS
# ============================================================

def validate_entity_spec(spec: EntitySpec) -> None:
    _require_lower_snake_case(SpecKind.ENTITY.value, "name", spec.name)


def validate_feature_spec(spec: FeatureSpec) -> None:
    kind = SpecKind.FEATURE.value

    _require(kind, "id", spec.id)
    _require_lower_snake_case(kind, "name", spec.name)
    _require_lower_snake_case(kind, "entity", spec.entity)

    if spec.value_type == ValueType.UNKNOWN:
        raise SpecValidationError(kind, "value_type must be provided", field="value_type")

    expected_id = f"{spec.entity}.{spec.name}"
    if spec.id.lower() != expected_id:
        raise SpecValidationError(
            kind,
            f"id {spec.id!r} does not match entity and name, expected {expected_id!r}",
            field="id",
        )

    if spec.group:
        _require_lower_snake_case(kind, "group", spec.group)

    if spec.data_stores is not None:
        for role, store in (("serving", spec.data_stores.serving),
                            ("warehouse", spec.data_stores.warehouse)):
            if store is not None and not store.id:
                raise SpecValidationError(
                    kind,
                    f"{role} data store id must be provided",
                    field=f"data_stores.{role}.id",
                )


def validate_feature_group_spec(spec: FeatureGroupSpec) -> None:
    _require_lower_snake_case(SpecKind.FEATURE_GROUP.value, "id", spec.id)


def validate_storage_spec(
    spec: StorageSpec,
    supported_types: Iterable[str] = DEFAULT_STORAGE_TYPES,
) -> None:
    kind = SpecKind.STORAGE.value

    _require(kind, "id", spec.id)
    if not STORAGE_ID.match(spec.id):
        raise SpecValidationError(
            kind,
            f"id {spec.id!r} may only contain letters, digits, '_' and '-'",
            field="id",
        )

    _require(kind, "type", spec.type)
    supported = {t.upper() for t in supported_types}
    if spec.type.upper() not in supported:
        raise SpecValidationError(
            kind,
            f"type {spec.type!r} is not one of {sorted(supported)}",
            field="type",
        )


def validate_import_spec(spec: ImportSpec) -> None:
    kind = "import"

    _require(kind, "type", spec.type)
    if not spec.entities:
        raise SpecValidationError(kind, "at least one entity must be declared", field="entities")

    for name in spec.entities:
        _require(kind, "entities", name)

    declared = set(spec.entities)
    for feature_id in spec.feature_ids():
        entity = feature_id.split(".", 1)[0]
        if "." not in feature_id or entity not in declared:
            raise SpecValidationError(
                kind,
                f"feature {feature_id!r} does not belong to a declared entity",
                field="schema.fields",
            )


# ============================================================
# DISPATCH
# ============================================================

class SpecValidator:
    """
    Dispatches a spec to the validator of its kind.

    Failures raise SpecValidationError; success returns None.
    """

    def __init__(self, storage_types: Optional[Iterable[str]] = None):
        self._storage_types = tuple(storage_types or DEFAULT_STORAGE_TYPES)
        self._validators: Dict[SpecKind, Callable[[BaseModel], None]] = {
            SpecKind.ENTITY: validate_entity_spec,
            SpecKind.FEATURE: validate_feature_spec,
            SpecKind.FEATURE_GROUP: validate_feature_group_spec,
            SpecKind.STORAGE: lambda spec: validate_storage_spec(spec, self._storage_types),
        }

    @property
    def storage_types(self) -> tuple:
        return self._storage_types

    def validate(self, kind: SpecKind, spec: BaseModel) -> None:
        try:
            self._validators[SpecKind(kind)](spec)
        except SpecValidationError as e:
            logger.warning(f"Validation failed: {e.message}")
            raise

    def validate_import(self, spec: ImportSpec) -> None:
        try:
            validate_import_spec(spec)
        except SpecValidationError as e:
            logger.warning(f"Validation failed: {e.message}")
            raise
