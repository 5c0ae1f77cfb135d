"""
Repository Layer Package.

============================================================
PURPOSE
============================================================
The Repository Layer is the ONLY gateway to persistent storage.
All database access MUST go through repository classes.

============================================================
ARCHITECTURE PRINCIPLES
============================================================
1. DAO Pattern: One repository per record kind
2. Session Injection: Sessions are injected, not created internally
3. Explicit Methods: No generic 'execute', clear method names
4. No Commits: Callers own the transaction boundary
5. Exception Handling: All DB errors wrapped in repository exceptions

============================================================
REPOSITORY GROUPS
============================================================

SPECS (replace-in-place)
------------------------
- EntityRepository
- FeatureRepository
- FeatureGroupRepository
- StorageRepository

JOBS
----
- JobRepository: jobs, associations, metrics

============================================================
"""

from storage.repositories.exceptions import (
    RepositoryException,
    RecordNotFoundError,
    DuplicateRecordError,
    IntegrityError,
    ConnectionError,
    QueryError,
    TransactionError,
)

from storage.repositories.base import BaseRepository

from storage.repositories.specs import (
    SpecRepository,
    EntityRepository,
    FeatureRepository,
    FeatureGroupRepository,
    StorageRepository,
)

from storage.repositories.jobs import JobRepository

__all__ = [
    # Exceptions
    "RepositoryException",
    "RecordNotFoundError",
    "DuplicateRecordError",
    "IntegrityError",
    "ConnectionError",
    "QueryError",
    "TransactionError",

    # Base
    "BaseRepository",

    # Specs
    "SpecRepository",
    "EntityRepository",
    "FeatureRepository",
    "FeatureGroupRepository",
    "StorageRepository",

    # Jobs
    "JobRepository",
]
