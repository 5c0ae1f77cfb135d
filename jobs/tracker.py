"""
Job Tracker.

============================================================
PURPOSE
============================================================
Records ingestion jobs and projects them into JobDetail.

- A job is created from an import spec, once, under an
  immutable id
- Entities and features referenced by the import spec are
  attached at creation and never changed afterwards
- Status, external id and metrics are written later by the
  execution subsystem

============================================================
UNREGISTERED REFERENCES
============================================================
With allow_unregistered_job_refs (default), an import spec may
name entities and features that were never registered. They
are stored as placeholder rows that stay invisible to spec
reads until registered.

============================================================
"""

import json
import logging
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from core.clock import ClockProtocol, SystemClock, ensure_utc, to_iso8601
from core.config import RegistryConfig
from core.exceptions import (
    ErrorClassification,
    InvalidStatusTransitionError,
    JobCreationError,
    RetrievalError,
    SpecValidationError,
)
from specs.schemas import ImportSpec, JobDetail, JobMetricDetail, JobStatus
from storage.database import unit_of_work
from storage.models.jobs import JobInfo, JobMetric
from storage.models.specs import EntityInfo, FeatureInfo
from storage.repositories.exceptions import (
    DuplicateRecordError,
    RecordNotFoundError,
    RepositoryException,
)
from storage.repositories.jobs import JobRepository
from storage.store import SpecStore
from validators.spec_validator import SpecValidator

logger = logging.getLogger(__name__)


def generate_job_id(import_type: str, runner: str, now: datetime) -> str:
    """Build a job id for callers that do not supply one."""
    stamp = ensure_utc(now).strftime("%Y%m%d%H%M%S%f")
    return f"{import_type}-{runner}-{stamp}".lower()


def to_metric_detail(metric: JobMetric) -> JobMetricDetail:
    return JobMetricDetail(
        name=metric.name,
        value=metric.value,
        timestamp=to_iso8601(metric.timestamp),
    )


class JobTracker:
    """
    Ledger of ingestion jobs.

    The tracker is passive: it records whatever status the
    execution subsystem reports unless strict transitions are
    enabled in the config.
    """

    def __init__(
        self,
        session: Session,
        clock: Optional[ClockProtocol] = None,
        config: Optional[RegistryConfig] = None,
    ):
        self.session = session
        self.clock = clock or SystemClock()
        self.config = config or RegistryConfig()
        self.store = SpecStore(session, self.clock)
        self.jobs = JobRepository(session)
        self.validator = SpecValidator(self.config.storage_types)

    # =========================================================
    # CREATION
    # =========================================================

    def create_job(
        self,
        job_id: Optional[str],
        ext_id: str,
        runner: str,
        import_spec: ImportSpec,
        status: JobStatus,
    ) -> JobInfo:
        """
        Create a job record from an import spec.

        Args:
            job_id: Internal job id; generated when empty
            ext_id: Id assigned by the runner, may be empty
            runner: Runner name
            import_spec: What the job reads and populates
            status: Initial status as reported by the caller

        Returns:
            The persisted job

        Raises:
            SpecValidationError: Invalid import spec, or unknown
                references while unregistered refs are disallowed
            JobCreationError: Duplicate id or persistence failure
        """
        self.validator.validate_import(import_spec)

        now = self.clock.now()
        job_id = job_id or generate_job_id(import_spec.type, runner, now)
        status = JobStatus(status)

        try:
            with unit_of_work(self.session):
                entities = self._resolve_entities(import_spec.entities, now)
                features = self._resolve_features(import_spec.feature_ids(), entities, now)

                job = JobInfo(
                    id=job_id,
                    ext_id=ext_id or "",
                    type=import_spec.type,
                    runner=runner,
                    options=json.dumps(import_spec.options, sort_keys=True),
                    status=status.value,
                    raw=import_spec.model_dump_json(by_alias=True),
                    created_at=now,
                    last_updated=now,
                )
                job.entities = list(entities.values())
                job.features = list(features.values())
                self.jobs.create_job(job)

        except DuplicateRecordError as e:
            logger.error(f"Error in create job {job_id!r}: {e}")
            raise JobCreationError(job_id, "job id already exists", cause=e) from e
        except RepositoryException as e:
            logger.error(f"Error in create job {job_id!r}: {e}")
            raise JobCreationError(job_id, "unable to persist job", cause=e) from e

        logger.info(
            f"Created job {job_id}: runner={runner}, status={status.value}, "
            f"entities={len(entities)}, features={len(features)}"
        )
        return job

    def _resolve_entities(self, names: List[str], now: datetime) -> Dict[str, EntityInfo]:
        resolved: Dict[str, EntityInfo] = {}
        for name in names:
            if name in resolved:
                continue
            row = self.store.entities.find(name)
            if row is None or not row.registered:
                self._check_unregistered_allowed("entity", name)
            if row is None:
                row = self.store.entities.create_placeholder(name, now)
            resolved[name] = row
        return resolved

    def _resolve_features(
        self,
        feature_ids: List[str],
        entities: Dict[str, EntityInfo],
        now: datetime,
    ) -> Dict[str, FeatureInfo]:
        resolved: Dict[str, FeatureInfo] = {}
        for feature_id in feature_ids:
            if feature_id in resolved:
                continue
            row = self.store.features.find(feature_id)
            if row is None or not row.registered:
                self._check_unregistered_allowed("feature", feature_id)
            if row is None:
                entity = entities[feature_id.split(".", 1)[0]]
                row = self.store.features.create_placeholder(feature_id, entity, now)
            resolved[feature_id] = row
        return resolved

    def _check_unregistered_allowed(self, kind: str, record_id: str) -> None:
        if not self.config.allow_unregistered_job_refs:
            raise SpecValidationError(
                "import",
                f"{kind} {record_id!r} is not registered",
                field="entities" if kind == "entity" else "schema.fields",
            )

    # =========================================================
    # PROJECTION
    # =========================================================

    def to_detail(self, job: JobInfo) -> JobDetail:
        """Project a job into its external representation."""
        return JobDetail(
            id=job.id,
            ext_id=job.ext_id,
            type=job.type,
            runner=job.runner,
            status=job.status,
            entities=sorted(entity.name for entity in job.entities),
            features=sorted(feature.id for feature in job.features),
            created=to_iso8601(job.created_at),
            last_updated=to_iso8601(job.last_updated),
        )

    # =========================================================
    # READS
    # =========================================================

    def get_job(self, job_id: str) -> JobInfo:
        try:
            return self.jobs.get_job(job_id)
        except RecordNotFoundError as e:
            raise RetrievalError(
                f"job {job_id!r} not found",
                kind="job",
                record_id=job_id,
                classification=ErrorClassification.NOT_FOUND,
                cause=e,
            ) from e
        except RepositoryException as e:
            logger.error(f"Error in get job {job_id!r}: {e}")
            raise RetrievalError(f"Unable to retrieve job {job_id!r}", kind="job", cause=e) from e

    def list_jobs(self) -> List[JobInfo]:
        return self._read("list jobs", self.jobs.list_jobs)

    def jobs_for_entity(self, entity_name: str) -> List[JobInfo]:
        return self._read("list jobs by entity", self.jobs.list_jobs_by_entity, entity_name)

    def jobs_for_feature(self, feature_id: str) -> List[JobInfo]:
        return self._read("list jobs by feature", self.jobs.list_jobs_by_feature, feature_id)

    def list_metrics(self, job_id: str) -> List[JobMetric]:
        self.get_job(job_id)
        return self._read("list metrics", self.jobs.list_metrics, job_id)

    def _read(self, operation: str, fn, *args):
        try:
            return fn(*args)
        except RepositoryException as e:
            logger.error(f"Error in {operation}: {e}")
            raise RetrievalError(f"Unable to {operation}", kind="job", cause=e) from e

    # =========================================================
    # LIFECYCLE UPDATES
    # =========================================================

    def update_status(self, job_id: str, status: JobStatus) -> JobInfo:
        """
        Record a status reported by the execution subsystem.

        Raises:
            RetrievalError: Unknown job
            InvalidStatusTransitionError: Strict mode and the job is
                already in a different terminal status
        """
        status = JobStatus(status)
        job = self.get_job(job_id)

        current = JobStatus(job.status) if job.status in JobStatus.__members__ else JobStatus.UNKNOWN
        if (
            self.config.strict_status_transitions
            and current.is_terminal
            and status != current
        ):
            raise InvalidStatusTransitionError(job_id, current.value, status.value)

        with unit_of_work(self.session):
            self.jobs.update_status(job, status.value, self.clock.now())

        logger.info(f"Job {job_id} status: {current.value} -> {status.value}")
        return job

    def update_external_id(self, job_id: str, ext_id: str) -> JobInfo:
        job = self.get_job(job_id)
        with unit_of_work(self.session):
            self.jobs.update_ext_id(job, ext_id, self.clock.now())
        logger.info(f"Job {job_id} external id set to {ext_id!r}")
        return job

    def record_metric(
        self,
        job_id: str,
        name: str,
        value: float,
        timestamp: Optional[datetime] = None,
    ) -> JobMetric:
        """Append a metric sample to a job."""
        job = self.get_job(job_id)
        with unit_of_work(self.session):
            metric = self.jobs.add_metric(job, name, float(value), timestamp or self.clock.now())
        logger.debug(f"Job {job_id} metric {name}={value}")
        return metric

    def delete_job(self, job_id: str) -> None:
        """Delete a job together with its associations and metrics."""
        job = self.get_job(job_id)
        with unit_of_work(self.session):
            self.jobs.delete_job(job)
        logger.info(f"Deleted job {job_id}")
