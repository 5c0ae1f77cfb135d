"""
Shared fixtures for the feature registry tests.

Every test gets a fresh in-memory SQLite database and a
MockClock pinned to a fixed instant.
"""

from datetime import datetime, timezone

import pytest

from core.clock import MockClock
from core.config import RegistryConfig
from specs.schemas import (
    EntitySpec,
    FeatureGroupSpec,
    FeatureSpec,
    ImportField,
    ImportSchema,
    ImportSpec,
    StorageSpec,
    ValueType,
)
from storage.database import create_database_engine, create_session_factory
from storage.models import Base


START_TIME = datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def config():
    return RegistryConfig(database_url="sqlite://")


@pytest.fixture
def engine(config):
    engine = create_database_engine(config)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    session = create_session_factory(engine)()
    yield session
    session.close()


@pytest.fixture
def clock():
    return MockClock(START_TIME)


# =============================================================
# SPEC BUILDERS
# =============================================================

@pytest.fixture
def entity_spec():
    def build(name="driver", **kwargs):
        return EntitySpec(name=name, **kwargs)
    return build


@pytest.fixture
def feature_spec():
    def build(entity="driver", name="rating", **kwargs):
        kwargs.setdefault("value_type", ValueType.DOUBLE)
        kwargs.setdefault("owner", "team-a@example.com")
        return FeatureSpec(id=f"{entity}.{name}", name=name, entity=entity, **kwargs)
    return build


@pytest.fixture
def storage_spec():
    def build(storage_id="redis-1", type="REDIS", **kwargs):
        return StorageSpec(id=storage_id, type=type, **kwargs)
    return build


@pytest.fixture
def feature_group_spec():
    def build(group_id="driver_ratings", **kwargs):
        return FeatureGroupSpec(id=group_id, **kwargs)
    return build


@pytest.fixture
def import_spec():
    def build(entities=("driver",), feature_ids=("driver.rating",), **kwargs):
        kwargs.setdefault("type", "file")
        fields = [ImportField(name=f"col_{i}", feature_id=fid) for i, fid in enumerate(feature_ids)]
        return ImportSpec(
            entities=list(entities),
            import_schema=ImportSchema(fields=fields, entity_id_column="id"),
            **kwargs,
        )
    return build


# =============================================================
# FILE DATABASE
# =============================================================

@pytest.fixture
def file_sessions(tmp_path):
    """Two independent sessions over one file-backed SQLite database."""
    config = RegistryConfig(database_url=f"sqlite:///{tmp_path / 'registry.db'}")
    engine = create_database_engine(config)
    Base.metadata.create_all(bind=engine)
    factory = create_session_factory(engine)
    first, second = factory(), factory()
    yield first, second
    first.close()
    second.close()
    engine.dispose()
