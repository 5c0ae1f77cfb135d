"""
Core Module - Exceptions.

============================================================
RESPONSIBILITY
============================================================
Defines the error taxonomy of the feature registry.

- Separates caller-fixable input errors from system failures
- Carries kind + human-readable reason for every failure
- Includes context for debugging
- Never retried inside the registry

============================================================
EXCEPTION HIERARCHY
============================================================
RegistryException (base)
├── SpecValidationError          (bad request)
├── RetrievalError               (not found / store unavailable)
├── RegistrationError            (spec write failed)
├── JobCreationError             (job write failed)
└── InvalidStatusTransitionError (strict status mode only)

============================================================
"""

from enum import Enum
from datetime import datetime, timezone
from typing import Any, Dict, Optional


# ============================================================
# SEVERITY LEVELS
# ============================================================

class Severity(Enum):
    """Exception severity levels for alerting."""

    LOW = "low"
    """Caller error, informational for operators."""

    MEDIUM = "medium"
    """Moderate issue, requires attention."""

    HIGH = "high"
    """Persistence problem, may impact every caller."""


# ============================================================
# ERROR CLASSIFICATION
# ============================================================

class ErrorClassification(Enum):
    """How the caller should treat the failure."""

    BAD_REQUEST = "bad_request"
    """Input was invalid, caller must fix it."""

    NOT_FOUND = "not_found"
    """Requested record does not exist."""

    INTERNAL = "internal"
    """The system could not complete the operation."""

    CONFLICT = "conflict"
    """Request conflicts with current record state."""


# ============================================================
# BASE EXCEPTION
# ============================================================

class RegistryException(Exception):
    """
    Base exception for all registry errors.

    All exceptions carry:
    - severity: for alerting
    - classification: for mapping onto transport status codes
    - context: for debugging
    - timestamp: when the error occurred
    """

    default_severity: Severity = Severity.MEDIUM
    default_classification: ErrorClassification = ErrorClassification.INTERNAL

    def __init__(
        self,
        message: str,
        severity: Optional[Severity] = None,
        context: Optional[Dict[str, Any]] = None,
        classification: Optional[ErrorClassification] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)

        self.message = message
        self.severity = severity or self.default_severity
        self.context = context or {}
        self.classification = classification or self.default_classification
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

        if cause:
            self.context["cause_type"] = type(cause).__name__
            self.context["cause_message"] = str(cause)

    @property
    def is_bad_request(self) -> bool:
        """Check if the caller can fix this by changing its input."""
        return self.classification == ErrorClassification.BAD_REQUEST


# ============================================================
# VALIDATION ERRORS
# ============================================================

class SpecValidationError(RegistryException):
    """A spec failed structural, semantic or referential checks."""

    default_severity = Severity.LOW
    default_classification = ErrorClassification.BAD_REQUEST

    def __init__(
        self,
        kind: str,
        reason: str,
        field: Optional[str] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})
        context["kind"] = kind
        if field:
            context["field"] = field

        super().__init__(
            message=f"Invalid {kind} spec: {reason}",
            context=context,
            **kwargs,
        )
        self.kind = kind
        self.reason = reason
        self.field = field


# ============================================================
# READ ERRORS
# ============================================================

class RetrievalError(RegistryException):
    """Requested records are missing or the store could not be read."""

    def __init__(
        self,
        message: str,
        kind: Optional[str] = None,
        record_id: Optional[str] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})
        if kind:
            context["kind"] = kind
        if record_id is not None:
            context["record_id"] = record_id

        super().__init__(message, context=context, **kwargs)
        self.kind = kind
        self.record_id = record_id


# ============================================================
# WRITE ERRORS
# ============================================================

class RegistrationError(RegistryException):
    """A valid spec could not be persisted."""

    default_severity = Severity.HIGH

    def __init__(self, kind: str, record_id: str, **kwargs):
        context = kwargs.pop("context", {})
        context.update({"kind": kind, "record_id": record_id})
        super().__init__(
            message=f"Failed to register {kind} {record_id!r}",
            context=context,
            **kwargs,
        )
        self.kind = kind
        self.record_id = record_id


class JobCreationError(RegistryException):
    """A job could not be created or persisted."""

    default_severity = Severity.HIGH

    def __init__(self, job_id: str, reason: str, **kwargs):
        context = kwargs.pop("context", {})
        context["job_id"] = job_id
        super().__init__(
            message=f"Failed to create job {job_id!r}: {reason}",
            context=context,
            **kwargs,
        )
        self.job_id = job_id
        self.reason = reason


class InvalidStatusTransitionError(RegistryException):
    """A job status change was rejected by strict transition mode."""

    default_classification = ErrorClassification.CONFLICT

    def __init__(self, job_id: str, from_status: str, to_status: str):
        super().__init__(
            message=f"Job {job_id!r} cannot move from {from_status} to {to_status}",
            context={
                "job_id": job_id,
                "from_status": from_status,
                "to_status": to_status,
            },
        )
        self.job_id = job_id
        self.from_status = from_status
        self.to_status = to_status


__all__ = [
    "Severity",
    "ErrorClassification",
    "RegistryException",
    "SpecValidationError",
    "RetrievalError",
    "RegistrationError",
    "JobCreationError",
    "InvalidStatusTransitionError",
]
