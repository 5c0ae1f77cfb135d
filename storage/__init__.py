"""
Storage Package.

This package manages all registry persistence.

Modules:
- database: Engine, sessions and the unit_of_work transaction boundary
- models/: ORM models for specs, jobs and metrics
- repositories/: Data access layer
- store: Keyed SpecStore contract used by the services
"""

from storage.store import SpecStore

__all__ = ["SpecStore"]
