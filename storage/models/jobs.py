"""
Job Tracking ORM Models.

============================================================
PURPOSE
============================================================
Ledger of ingestion jobs: which runner executed them, which
entities and features they populate, their status and the
metrics they report.

============================================================
DATA LIFECYCLE ROLE
============================================================
- Mutability: status / ext_id / metrics change, associations fixed
- Source: Ingestion invocation path, execution subsystem
- Deleting a job deletes its associations and metrics

============================================================
MODELS
============================================================
- job_entities: (job_id, entity_name) association
- job_features: (job_id, feature_id) association
- JobInfo: Job record
- JobMetric: Metric sample owned by a job

============================================================
"""

from datetime import datetime
from typing import List

from sqlalchemy import (
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storage.models.base import Base, TimestampMixin
from storage.models.specs import EntityInfo, FeatureInfo


job_entities = Table(
    "job_entities",
    Base.metadata,
    Column("job_id", String(255), ForeignKey("jobs.id", ondelete="CASCADE"), primary_key=True),
    Column("entity_name", String(255), ForeignKey("entities.name", ondelete="RESTRICT"), primary_key=True),
    Index("idx_job_entities_entity", "entity_name"),
)


job_features = Table(
    "job_features",
    Base.metadata,
    Column("job_id", String(255), ForeignKey("jobs.id", ondelete="CASCADE"), primary_key=True),
    Column("feature_id", String(511), ForeignKey("features.id", ondelete="RESTRICT"), primary_key=True),
    Index("idx_job_features_feature", "feature_id"),
)


class JobInfo(Base, TimestampMixin):
    """
    One ingestion invocation.

    ============================================================
    TRACEABILITY
    ============================================================
    - id: internal job name, generated upon invocation, immutable
    - ext_id: id assigned by the runner
    - raw: full import spec as JSON for audit
    ============================================================
    """

    __tablename__ = "jobs"

    id: Mapped[str] = mapped_column(
        String(255),
        primary_key=True,
        comment="Internal job id"
    )

    ext_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="",
        comment="Runner-assigned job id"
    )

    type: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="Import source type"
    )

    runner: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="Runner name"
    )

    options: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="{}",
        comment="Import options as a JSON string"
    )

    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        comment="Job status name"
    )

    raw: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Raw import spec as a JSON string"
    )

    entities: Mapped[List[EntityInfo]] = relationship(
        secondary=job_entities,
        lazy="selectin",
    )

    features: Mapped[List[FeatureInfo]] = relationship(
        secondary=job_features,
        lazy="selectin",
    )

    metrics: Mapped[List["JobMetric"]] = relationship(
        back_populates="job",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="JobMetric.id",
        lazy="selectin",
    )

    __table_args__ = (
        Index("idx_jobs_status", "status"),
        Index("idx_jobs_ext_id", "ext_id"),
    )

    def __repr__(self) -> str:
        return f"<JobInfo id={self.id!r} status={self.status!r}>"


class JobMetric(Base):
    """
    A metric sample reported for a job.

    Append-only while the job is active; removed with the job.
    """

    __tablename__ = "job_metrics"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    job_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("jobs.id", ondelete="CASCADE"),
        nullable=False,
        comment="Owning job"
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Metric name"
    )

    value: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        comment="Metric value"
    )

    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        comment="Sample timestamp (UTC)"
    )

    job: Mapped[JobInfo] = relationship(back_populates="metrics")

    __table_args__ = (
        Index("idx_job_metrics_job", "job_id", "name"),
    )

    def __repr__(self) -> str:
        return f"<JobMetric job_id={self.job_id!r} name={self.name!r} value={self.value}>"
