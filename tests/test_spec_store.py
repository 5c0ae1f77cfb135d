"""
Tests for the Spec Store.

Tests cover:
- Upsert semantics and timestamps
- Get / get_many / list_all / exists
- Placeholder rows staying invisible
- SQLAlchemy errors wrapped into repository exceptions
- Two sessions writing the same id
"""

import pytest
from unittest.mock import patch
from sqlalchemy.exc import OperationalError

from core.clock import ensure_utc
from specs.schemas import SpecKind
from storage.database import unit_of_work
from storage.repositories.exceptions import (
    ConnectionError,
    RecordNotFoundError,
    TransactionError,
)
from storage.models import EntityInfo
from storage.repositories.specs import SpecRepository
from storage.store import SpecStore


@pytest.fixture
def store(session, clock):
    return SpecStore(session, clock)


def put(store, kind, record_id, spec):
    with unit_of_work(store.session):
        return store.put(kind, record_id, spec)


# =============================================================
# TEST: Put
# =============================================================

class TestPut:
    """Test upsert behaviour."""

    def test_put_then_get_returns_payload(self, store, entity_spec):
        spec = entity_spec("driver", description="Ride driver", tags=["core"])
        put(store, SpecKind.ENTITY, "driver", spec)

        record = store.get(SpecKind.ENTITY, "driver")
        assert record.spec == spec.model_dump(mode="json", by_alias=True)
        assert record.description == "Ride driver"
        assert record.registered is True

    def test_insert_sets_both_timestamps(self, store, clock, entity_spec):
        record = put(store, SpecKind.ENTITY, "driver", entity_spec())

        assert ensure_utc(record.created_at) == clock.now()
        assert ensure_utc(record.last_updated) == clock.now()

    def test_overwrite_keeps_created_and_bumps_last_updated(self, store, clock, entity_spec):
        put(store, SpecKind.ENTITY, "driver", entity_spec(description="v1"))
        created = clock.now()

        clock.advance(minutes=5)
        put(store, SpecKind.ENTITY, "driver", entity_spec(description="v2"))

        record = store.get(SpecKind.ENTITY, "driver")
        assert record.spec["description"] == "v2"
        assert ensure_utc(record.created_at) == created
        assert ensure_utc(record.last_updated) == clock.now()
        assert record.created_at <= record.last_updated

    def test_overwrite_replaces_whole_payload(self, store, storage_spec):
        put(store, SpecKind.STORAGE, "redis-1", storage_spec(options={"host": "a"}))
        put(store, SpecKind.STORAGE, "redis-1", storage_spec(type="BIGTABLE"))

        record = store.get(SpecKind.STORAGE, "redis-1")
        assert record.type == "BIGTABLE"
        assert record.options == {}
        assert record.spec["options"] == {}

    def test_feature_columns_follow_spec(self, store, entity_spec, feature_spec):
        put(store, SpecKind.ENTITY, "driver", entity_spec())
        put(store, SpecKind.FEATURE, "driver.rating", feature_spec(uri="https://example.com/rating"))

        record = store.get(SpecKind.FEATURE, "driver.rating")
        assert record.entity_name == "driver"
        assert record.name == "rating"
        assert record.value_type == "DOUBLE"
        assert record.uri == "https://example.com/rating"
        assert record.group_id is None


# =============================================================
# TEST: Reads
# =============================================================

class TestReads:
    """Test get, get_many, list_all and exists."""

    def test_get_unknown_raises(self, store):
        with pytest.raises(RecordNotFoundError) as exc_info:
            store.get(SpecKind.ENTITY, "missing")

        assert exc_info.value.record_id == "missing"

    def test_get_many_keeps_request_order(self, store, entity_spec):
        for name in ("driver", "rider", "trip"):
            put(store, SpecKind.ENTITY, name, entity_spec(name))

        records = store.get_many(SpecKind.ENTITY, ["trip", "driver", "rider"])
        assert [r.name for r in records] == ["trip", "driver", "rider"]

    def test_get_many_empty_returns_empty(self, store):
        assert store.get_many(SpecKind.ENTITY, []) == []

    def test_get_many_fails_on_any_missing_id(self, store, entity_spec):
        put(store, SpecKind.ENTITY, "driver", entity_spec())

        with pytest.raises(RecordNotFoundError) as exc_info:
            store.get_many(SpecKind.ENTITY, ["driver", "ghost"])

        assert exc_info.value.record_id == "ghost"

    def test_list_all_returns_each_registered_id_once(self, store, entity_spec):
        put(store, SpecKind.ENTITY, "driver", entity_spec("driver"))
        put(store, SpecKind.ENTITY, "rider", entity_spec("rider"))
        put(store, SpecKind.ENTITY, "driver", entity_spec("driver", description="again"))

        names = [r.name for r in store.list_all(SpecKind.ENTITY)]
        assert sorted(names) == ["driver", "rider"]

    def test_list_all_empty(self, store):
        assert store.list_all(SpecKind.FEATURE_GROUP) == []

    def test_exists(self, store, entity_spec):
        put(store, SpecKind.ENTITY, "driver", entity_spec())

        assert store.exists(SpecKind.ENTITY, "driver") is True
        assert store.exists(SpecKind.ENTITY, "rider") is False


# =============================================================
# TEST: Placeholders
# =============================================================

class TestPlaceholders:
    """Unregistered rows created for jobs are hidden from reads."""

    def test_placeholder_hidden_from_reads(self, store, clock):
        with unit_of_work(store.session):
            store.entities.create_placeholder("rider", clock.now())

        assert store.exists(SpecKind.ENTITY, "rider") is False
        assert store.list_all(SpecKind.ENTITY) == []
        with pytest.raises(RecordNotFoundError):
            store.get(SpecKind.ENTITY, "rider")
        with pytest.raises(RecordNotFoundError):
            store.get_many(SpecKind.ENTITY, ["rider"])

    def test_registration_upgrades_placeholder(self, store, clock, entity_spec):
        with unit_of_work(store.session):
            store.entities.create_placeholder("rider", clock.now())

        put(store, SpecKind.ENTITY, "rider", entity_spec("rider", description="Passenger"))

        record = store.get(SpecKind.ENTITY, "rider")
        assert record.registered is True
        assert record.spec["description"] == "Passenger"

    def test_feature_placeholder_named_after_id_suffix(self, store, clock):
        with unit_of_work(store.session):
            entity = store.entities.create_placeholder("driver", clock.now())
            feature = store.features.create_placeholder("driver.trips_today", entity, clock.now())

        assert feature.name == "trips_today"
        assert feature.entity_name == "driver"
        assert store.exists(SpecKind.FEATURE, "driver.trips_today") is False


# =============================================================
# TEST: Error wrapping
# =============================================================

class TestErrorWrapping:
    """SQLAlchemy errors surface as repository exceptions."""

    def test_operational_error_becomes_connection_error(self, store):
        error = OperationalError("SELECT", {}, Exception("database is locked"))
        with patch.object(store.session, "execute", side_effect=error):
            with pytest.raises(ConnectionError):
                store.list_all(SpecKind.ENTITY)

    def test_failed_commit_rolls_back(self, store, entity_spec):
        error = OperationalError("COMMIT", {}, Exception("disk I/O error"))
        with patch.object(store.session, "commit", side_effect=error):
            with pytest.raises(TransactionError):
                put(store, SpecKind.ENTITY, "driver", entity_spec())

        assert store.exists(SpecKind.ENTITY, "driver") is False


# =============================================================
# TEST: Concurrent writers
# =============================================================

class TestConcurrentWriters:
    """Sessions that both saw an id as absent before writing it."""

    def test_second_first_time_writer_overwrites(self, file_sessions, clock, storage_spec):
        first = SpecStore(file_sessions[0], clock)
        second = SpecStore(file_sessions[1], clock)
        assert second.exists(SpecKind.STORAGE, "redis-1") is False

        put(first, SpecKind.STORAGE, "redis-1", storage_spec(type="REDIS"))
        created = clock.now()
        clock.advance(seconds=5)
        record = put(second, SpecKind.STORAGE, "redis-1", storage_spec(type="BIGTABLE"))

        assert record.type == "BIGTABLE"
        assert record.spec["type"] == "BIGTABLE"
        assert ensure_utc(record.created_at) == created
        assert ensure_utc(record.last_updated) == clock.now()

    def test_placeholder_insert_keeps_existing_row(self, file_sessions, clock, entity_spec):
        first = SpecStore(file_sessions[0], clock)
        second = SpecStore(file_sessions[1], clock)
        assert second.entities.find("rider") is None

        put(first, SpecKind.ENTITY, "rider", entity_spec("rider", description="Passenger"))
        with unit_of_work(second.session):
            row = second.entities.create_placeholder("rider", clock.now())

        assert row.registered is True
        assert second.get(SpecKind.ENTITY, "rider").description == "Passenger"


# =============================================================
# TEST: Repository contract
# =============================================================

class TestSpecRepository:

    def test_base_repository_cannot_be_instantiated(self, session):
        with pytest.raises(TypeError, match="_columns"):
            SpecRepository(session, EntityInfo, "spec")
