"""
Validators Package.

Pure, store-independent validation of spec documents.
"""

from validators.spec_validator import (
    SpecValidator,
    validate_entity_spec,
    validate_feature_spec,
    validate_feature_group_spec,
    validate_storage_spec,
    validate_import_spec,
)

__all__ = [
    "SpecValidator",
    "validate_entity_spec",
    "validate_feature_spec",
    "validate_feature_group_spec",
    "validate_storage_spec",
    "validate_import_spec",
]
