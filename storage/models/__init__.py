"""
Storage Models Package.

ORM models for the feature registry database.

============================================================
MODEL ORGANIZATION
============================================================

Specs (specs.py)
- EntityInfo
- FeatureInfo
- FeatureGroupInfo
- StorageInfo

Jobs (jobs.py)
- JobInfo
- JobMetric
- job_entities / job_features association tables

============================================================
DESIGN PRINCIPLES
============================================================

- All timestamps are timezone-aware and set explicitly
- Spec payloads are stored whole, flattened columns are for lookup
- Foreign keys are explicitly defined
- No business logic in models

============================================================
"""

from storage.models.base import Base, JSONType, SpecRecordMixin, TimestampMixin

from storage.models.specs import (
    EntityInfo,
    FeatureInfo,
    FeatureGroupInfo,
    StorageInfo,
)

from storage.models.jobs import (
    JobInfo,
    JobMetric,
    job_entities,
    job_features,
)

__all__ = [
    # Base
    "Base",
    "JSONType",
    "SpecRecordMixin",
    "TimestampMixin",
    # Specs
    "EntityInfo",
    "FeatureInfo",
    "FeatureGroupInfo",
    "StorageInfo",
    # Jobs
    "JobInfo",
    "JobMetric",
    "job_entities",
    "job_features",
]
