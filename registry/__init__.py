"""
Registry Package.

Write and read sides of the spec registry.

Components:
- service: SpecRegistry, validated registration of every spec kind
- query: QueryFacade, all-or-nothing gets and listings
- router: FastAPI routes under /specs
"""

from registry.query import QueryFacade
from registry.service import SpecRegistry, feature_id_for

__all__ = [
    "QueryFacade",
    "SpecRegistry",
    "feature_id_for",
]
