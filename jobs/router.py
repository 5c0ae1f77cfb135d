"""
FastAPI Router for Job Tracking Endpoints.

Provides REST API for the job ledger:
- Create a job from an import spec
- View jobs, by id or all
- Report status, external id and metrics
- Delete a job
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from core.config import RegistryConfig
from core.exceptions import RegistryException
from jobs.tracker import JobTracker, to_metric_detail
from registry.router import get_db, get_registry_config, to_http_exception
from specs.schemas import (
    CreateJobRequest,
    JobDetail,
    JobMetricDetail,
    JobMetricsResponse,
    JobsResponse,
    RecordMetricRequest,
    UpdateJobStatusRequest,
)

router = APIRouter(prefix="/jobs", tags=["Jobs"])


def get_job_tracker(
    db: Session = Depends(get_db),
    config: RegistryConfig = Depends(get_registry_config),
) -> JobTracker:
    return JobTracker(db, config=config)


# =============================================================
# JOB ENDPOINTS
# =============================================================

@router.post("", response_model=JobDetail, status_code=status.HTTP_201_CREATED)
def create_job(
    request: CreateJobRequest,
    tracker: JobTracker = Depends(get_job_tracker),
):
    """
    Create a job record from an import spec.

    A job id is generated when the request omits one.
    """
    try:
        job = tracker.create_job(
            job_id=request.job_id,
            ext_id=request.ext_id,
            runner=request.runner,
            import_spec=request.import_spec,
            status=request.status,
        )
        return tracker.to_detail(job)
    except RegistryException as e:
        raise to_http_exception(e)


@router.get("", response_model=JobsResponse)
def list_jobs(
    entity: Optional[str] = Query(None, description="Only jobs populating this entity"),
    feature: Optional[str] = Query(None, description="Only jobs populating this feature"),
    tracker: JobTracker = Depends(get_job_tracker),
):
    try:
        if entity:
            jobs = tracker.jobs_for_entity(entity)
        elif feature:
            jobs = tracker.jobs_for_feature(feature)
        else:
            jobs = tracker.list_jobs()
        return JobsResponse(jobs=[tracker.to_detail(job) for job in jobs])
    except RegistryException as e:
        raise to_http_exception(e)


@router.get("/{job_id}", response_model=JobDetail)
def get_job(job_id: str, tracker: JobTracker = Depends(get_job_tracker)):
    try:
        return tracker.to_detail(tracker.get_job(job_id))
    except RegistryException as e:
        raise to_http_exception(e)


@router.delete("/{job_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_job(job_id: str, tracker: JobTracker = Depends(get_job_tracker)):
    try:
        tracker.delete_job(job_id)
    except RegistryException as e:
        raise to_http_exception(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =============================================================
# LIFECYCLE ENDPOINTS
# =============================================================

@router.patch("/{job_id}/status", response_model=JobDetail)
def update_job_status(
    job_id: str,
    request: UpdateJobStatusRequest,
    tracker: JobTracker = Depends(get_job_tracker),
):
    """Record a status reported by the execution subsystem."""
    try:
        return tracker.to_detail(tracker.update_status(job_id, request.status))
    except RegistryException as e:
        raise to_http_exception(e)


@router.put("/{job_id}/ext-id", response_model=JobDetail)
def update_external_id(
    job_id: str,
    ext_id: str = Query(..., description="Id assigned by the runner"),
    tracker: JobTracker = Depends(get_job_tracker),
):
    try:
        return tracker.to_detail(tracker.update_external_id(job_id, ext_id))
    except RegistryException as e:
        raise to_http_exception(e)


@router.post("/{job_id}/metrics", response_model=JobMetricDetail, status_code=status.HTTP_201_CREATED)
def record_metric(
    job_id: str,
    request: RecordMetricRequest,
    tracker: JobTracker = Depends(get_job_tracker),
):
    try:
        metric = tracker.record_metric(job_id, request.name, request.value, request.timestamp)
        return to_metric_detail(metric)
    except RegistryException as e:
        raise to_http_exception(e)


@router.get("/{job_id}/metrics", response_model=JobMetricsResponse)
def list_metrics(job_id: str, tracker: JobTracker = Depends(get_job_tracker)):
    try:
        metrics = tracker.list_metrics(job_id)
        return JobMetricsResponse(metrics=[to_metric_detail(m) for m in metrics])
    except RegistryException as e:
        raise to_http_exception(e)
