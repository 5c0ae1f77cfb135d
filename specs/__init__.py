"""
Specs Package.

Pydantic definitions of every spec document the registry stores
and of the shapes it returns.

Usage:
    from specs import EntitySpec, FeatureSpec, ImportSpec, JobStatus
"""

from specs.schemas import (
    SpecKind,
    ValueType,
    JobStatus,
    TERMINAL_JOB_STATUSES,
    DataStore,
    DataStores,
    EntitySpec,
    FeatureSpec,
    FeatureGroupSpec,
    StorageSpec,
    ImportField,
    ImportSchema,
    ImportSpec,
    JobDetail,
    JobMetricDetail,
)

__all__ = [
    "SpecKind",
    "ValueType",
    "JobStatus",
    "TERMINAL_JOB_STATUSES",
    "DataStore",
    "DataStores",
    "EntitySpec",
    "FeatureSpec",
    "FeatureGroupSpec",
    "StorageSpec",
    "ImportField",
    "ImportSchema",
    "ImportSpec",
    "JobDetail",
    "JobMetricDetail",
]
