"""
Pydantic Schemas for the Feature Registry.

Spec documents (entity, feature, feature group, storage, import)
and the request/response shapes of the registry API.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================
# ENUMS
# =============================================================

class SpecKind(str, Enum):
    ENTITY = "entity"
    FEATURE = "feature"
    FEATURE_GROUP = "feature_group"
    STORAGE = "storage"


class ValueType(str, Enum):
    UNKNOWN = "UNKNOWN"
    BYTES = "BYTES"
    STRING = "STRING"
    INT32 = "INT32"
    INT64 = "INT64"
    DOUBLE = "DOUBLE"
    FLOAT = "FLOAT"
    BOOL = "BOOL"
    TIMESTAMP = "TIMESTAMP"


class JobStatus(str, Enum):
    """Job statuses; the set is owned by the job execution subsystem."""
    UNKNOWN = "UNKNOWN"
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    ABORTING = "ABORTING"
    ABORTED = "ABORTED"
    ERROR = "ERROR"
    SUSPENDING = "SUSPENDING"
    SUSPENDED = "SUSPENDED"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_JOB_STATUSES


TERMINAL_JOB_STATUSES = frozenset({
    JobStatus.COMPLETED,
    JobStatus.ABORTED,
    JobStatus.ERROR,
})


# =============================================================
# STORAGE REFERENCES
# =============================================================

class DataStore(BaseModel):
    """Reference to a registered storage plus per-use options."""
    id: str = ""
    options: Dict[str, str] = Field(default_factory=dict)


class DataStores(BaseModel):
    """Where a feature is served from and archived to."""
    serving: Optional[DataStore] = None
    warehouse: Optional[DataStore] = None

    def store_ids(self) -> List[str]:
        return [s.id for s in (self.serving, self.warehouse) if s is not None and s.id]


# =============================================================
# SPEC DOCUMENTS
# =============================================================

class EntitySpec(BaseModel):
    """A named key that features are associated with."""
    name: str = ""
    description: str = ""
    tags: List[str] = Field(default_factory=list)


class FeatureSpec(BaseModel):
    """A typed value owned by one entity, identified by entity.name."""
    id: str = ""
    name: str = ""
    owner: str = ""
    description: str = ""
    uri: str = ""
    value_type: ValueType = ValueType.UNKNOWN
    entity: str = ""
    group: str = ""
    tags: List[str] = Field(default_factory=list)
    options: Dict[str, str] = Field(default_factory=dict)
    data_stores: Optional[DataStores] = None


class FeatureGroupSpec(BaseModel):
    """Tags, options and stores shared by a set of features."""
    id: str = ""
    tags: List[str] = Field(default_factory=list)
    options: Dict[str, str] = Field(default_factory=dict)
    data_stores: Optional[DataStores] = None


class StorageSpec(BaseModel):
    """A target or source system for feature values."""
    id: str = ""
    type: str = ""
    options: Dict[str, str] = Field(default_factory=dict)


class ImportField(BaseModel):
    """One column of an import source, optionally mapped to a feature."""
    name: str = ""
    feature_id: str = ""


class ImportSchema(BaseModel):
    fields: List[ImportField] = Field(default_factory=list)
    timestamp_column: str = ""
    timestamp_value: Optional[datetime] = None
    entity_id_column: str = ""


class ImportSpec(BaseModel):
    """Declaration of what an ingestion job reads and populates."""
    model_config = ConfigDict(populate_by_name=True)

    type: str = ""
    job_options: Dict[str, str] = Field(default_factory=dict)
    options: Dict[str, str] = Field(default_factory=dict)
    entities: List[str] = Field(default_factory=list)
    import_schema: ImportSchema = Field(default_factory=ImportSchema, alias="schema")

    def feature_ids(self) -> List[str]:
        """Non-empty feature ids of the schema fields, in field order."""
        return [f.feature_id for f in self.import_schema.fields if f.feature_id]


# =============================================================
# REGISTRATION RESPONSES
# =============================================================

class RegisterEntityResponse(BaseModel):
    entity_name: str


class RegisterFeatureResponse(BaseModel):
    feature_id: str


class RegisterFeatureGroupResponse(BaseModel):
    feature_group_id: str


class RegisterStorageResponse(BaseModel):
    storage_id: str


# =============================================================
# RETRIEVAL REQUESTS / RESPONSES
# =============================================================

class GetSpecsRequest(BaseModel):
    ids: List[str] = Field(default_factory=list)


class EntitiesResponse(BaseModel):
    entities: List[EntitySpec]


class FeaturesResponse(BaseModel):
    features: List[FeatureSpec]


class FeatureGroupsResponse(BaseModel):
    feature_groups: List[FeatureGroupSpec]


class StorageResponse(BaseModel):
    storage_specs: List[StorageSpec]


# =============================================================
# JOB SCHEMAS
# =============================================================

class JobDetail(BaseModel):
    """Flattened, transport-ready view of a job."""
    id: str
    ext_id: str
    type: str
    runner: str
    status: str
    entities: List[str]
    features: List[str]
    created: str
    last_updated: str


class JobMetricDetail(BaseModel):
    name: str
    value: float
    timestamp: str


class CreateJobRequest(BaseModel):
    job_id: Optional[str] = None
    ext_id: str = ""
    runner: str
    import_spec: ImportSpec
    status: JobStatus


class UpdateJobStatusRequest(BaseModel):
    status: JobStatus


class RecordMetricRequest(BaseModel):
    name: str
    value: float
    timestamp: Optional[datetime] = None


class JobsResponse(BaseModel):
    jobs: List[JobDetail]


class JobMetricsResponse(BaseModel):
    metrics: List[JobMetricDetail]
