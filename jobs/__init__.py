"""
Jobs Package.

Ledger of ingestion jobs created from import specs.

Usage:
    from jobs import JobTracker

    tracker = JobTracker(session)
    job = tracker.create_job(None, "", "dataflow", import_spec, JobStatus.PENDING)
    detail = tracker.to_detail(job)
"""

from jobs.tracker import JobTracker, generate_job_id, to_metric_detail

__all__ = [
    "JobTracker",
    "generate_job_id",
    "to_metric_detail",
]
