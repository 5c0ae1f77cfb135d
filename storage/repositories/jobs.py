"""
Job Repositories.

============================================================
PURPOSE
============================================================
Persistence for ingestion jobs, their entity/feature
associations and their metrics.

============================================================
DATA LIFECYCLE
============================================================
- JobInfo: insert once, status/ext_id updated in place
- Associations: written with the job, never changed afterwards
- JobMetric: APPEND-ONLY, removed together with the job

============================================================
"""

from datetime import datetime
from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session

from storage.models.jobs import JobInfo, JobMetric, job_entities, job_features
from storage.repositories.base import BaseRepository
from storage.repositories.exceptions import DuplicateRecordError


class JobRepository(BaseRepository[JobInfo]):
    """
    Repository for jobs.

    ============================================================
    MODELS MANAGED
    ============================================================
    - JobInfo
    - JobMetric (owned, cascading delete)
    - job_entities / job_features (lookup by either side)
    ============================================================
    """

    def __init__(self, session: Session) -> None:
        super().__init__(session, JobInfo, "JobRepository")

    # =========================================================
    # JOB OPERATIONS
    # =========================================================

    def create_job(self, job: JobInfo) -> JobInfo:
        """
        Insert a new job with its associations.

        Raises:
            DuplicateRecordError: If a job with the same id exists
        """
        if self._get_by_id(job.id) is not None:
            raise DuplicateRecordError(
                repository_name=self._repository_name,
                constraint_field="id",
                value=job.id,
            )
        return self._add(job)

    def get_job(self, job_id: str) -> JobInfo:
        """Get job by ID, raising if not found."""
        return self._get_by_id_or_raise(job_id, "job_id")

    def list_jobs(self) -> List[JobInfo]:
        """All jobs, oldest first."""
        stmt = select(JobInfo).order_by(JobInfo.created_at, JobInfo.id)
        return self._execute_query(stmt)

    def list_jobs_by_entity(self, entity_name: str) -> List[JobInfo]:
        """Jobs that populate the given entity."""
        stmt = (
            select(JobInfo)
            .join(job_entities, job_entities.c.job_id == JobInfo.id)
            .where(job_entities.c.entity_name == entity_name)
            .order_by(JobInfo.created_at, JobInfo.id)
        )
        return self._execute_query(stmt)

    def list_jobs_by_feature(self, feature_id: str) -> List[JobInfo]:
        """Jobs that populate the given feature."""
        stmt = (
            select(JobInfo)
            .join(job_features, job_features.c.job_id == JobInfo.id)
            .where(job_features.c.feature_id == feature_id)
            .order_by(JobInfo.created_at, JobInfo.id)
        )
        return self._execute_query(stmt)

    def update_status(self, job: JobInfo, status: str, now: datetime) -> JobInfo:
        job.status = status
        job.last_updated = now
        self._flush("update_status")
        return job

    def update_ext_id(self, job: JobInfo, ext_id: str, now: datetime) -> JobInfo:
        job.ext_id = ext_id
        job.last_updated = now
        self._flush("update_ext_id")
        return job

    def delete_job(self, job: JobInfo) -> None:
        """Delete a job; its metrics and associations go with it."""
        self._delete(job)

    # =========================================================
    # METRIC OPERATIONS
    # =========================================================

    def add_metric(
        self,
        job: JobInfo,
        name: str,
        value: float,
        timestamp: datetime,
    ) -> JobMetric:
        metric = JobMetric(name=name, value=value, timestamp=timestamp)
        job.metrics.append(metric)
        self._flush("add_metric")
        return metric

    def list_metrics(self, job_id: str) -> List[JobMetric]:
        stmt = (
            select(JobMetric)
            .where(JobMetric.job_id == job_id)
            .order_by(JobMetric.id)
        )
        return self._execute_query(stmt)

    def exists(self, job_id: str) -> bool:
        return self._get_by_id(job_id) is not None


