"""
Tests for the HTTP API.

Tests cover:
- Spec registration and retrieval routes
- Error taxonomy mapped to status codes
- Job routes
- Health endpoint
"""

import pytest
from fastapi.testclient import TestClient

from api import create_app
from core.config import RegistryConfig


@pytest.fixture
def client():
    app = create_app(RegistryConfig(database_url="sqlite://"))
    with TestClient(app) as client:
        yield client


@pytest.fixture
def driver(client):
    response = client.post("/specs/entities", json={"name": "driver", "description": "Ride driver"})
    assert response.status_code == 200
    return response.json()


FEATURE = {
    "id": "driver.rating",
    "name": "rating",
    "entity": "driver",
    "owner": "team-a@example.com",
    "value_type": "DOUBLE",
}

IMPORT_SPEC = {
    "type": "file",
    "options": {"path": "gs://bucket/drivers.csv"},
    "entities": ["driver"],
    "schema": {
        "entity_id_column": "driver_id",
        "fields": [
            {"name": "driver_id"},
            {"name": "rating", "feature_id": "driver.rating"},
        ],
    },
}


# =============================================================
# TEST: Spec routes
# =============================================================

class TestSpecRoutes:

    def test_register_entity(self, driver):
        assert driver == {"entity_name": "driver"}

    def test_register_and_get_feature(self, client, driver):
        response = client.post("/specs/features", json=FEATURE)
        assert response.status_code == 200
        assert response.json() == {"feature_id": "driver.rating"}

        response = client.post("/specs/features/get", json={"ids": ["driver.rating"]})
        assert response.status_code == 200
        features = response.json()["features"]
        assert [f["id"] for f in features] == ["driver.rating"]
        assert features[0]["value_type"] == "DOUBLE"

    def test_storage_overwrite(self, client):
        client.post("/specs/storage", json={"id": "redis-1", "type": "REDIS"})
        response = client.post("/specs/storage", json={"id": "redis-1", "type": "BIGTABLE"})
        assert response.json() == {"storage_id": "redis-1"}

        response = client.get("/specs/storage")
        specs = response.json()["storage_specs"]
        assert [(s["id"], s["type"]) for s in specs] == [("redis-1", "BIGTABLE")]

    def test_feature_group_routes(self, client):
        response = client.post("/specs/feature-groups", json={"id": "driver_ratings"})
        assert response.json() == {"feature_group_id": "driver_ratings"}

        response = client.get("/specs/feature-groups")
        assert [g["id"] for g in response.json()["feature_groups"]] == ["driver_ratings"]

    def test_list_entities(self, client, driver):
        response = client.get("/specs/entities")
        assert response.json() == {
            "entities": [{"name": "driver", "description": "Ride driver", "tags": []}]
        }

    def test_invalid_spec_is_bad_request(self, client):
        response = client.post("/specs/entities", json={"name": "Bad Name"})
        assert response.status_code == 400
        assert "Invalid entity spec" in response.json()["detail"]

    def test_feature_without_entity_is_bad_request(self, client):
        response = client.post("/specs/features", json=FEATURE)
        assert response.status_code == 400

    def test_get_unknown_id_fails(self, client, driver):
        response = client.post("/specs/entities/get", json={"ids": ["driver", "ghost"]})
        assert response.status_code == 500
        assert "ghost" in response.json()["detail"]

    def test_get_empty_ids(self, client):
        response = client.post("/specs/entities/get", json={"ids": []})
        assert response.json() == {"entities": []}

    def test_list_features_filtered_by_entity(self, client, driver):
        client.post("/specs/entities", json={"name": "rider"})
        client.post("/specs/features", json=FEATURE)
        client.post(
            "/specs/features",
            json={**FEATURE, "id": "rider.home_city", "name": "home_city", "entity": "rider"},
        )

        response = client.get("/specs/features", params={"entity": "rider"})
        assert response.status_code == 200
        assert [f["id"] for f in response.json()["features"]] == ["rider.home_city"]

        response = client.get("/specs/features")
        assert sorted(f["id"] for f in response.json()["features"]) == [
            "driver.rating",
            "rider.home_city",
        ]


# =============================================================
# TEST: Job routes
# =============================================================

class TestJobRoutes:

    def create_job(self, client, **overrides):
        body = {
            "job_id": "job-1",
            "ext_id": "",
            "runner": "DataflowRunner",
            "import_spec": IMPORT_SPEC,
            "status": "PENDING",
        }
        body.update(overrides)
        return client.post("/jobs", json=body)

    def test_create_job(self, client):
        response = self.create_job(client)
        assert response.status_code == 201

        detail = response.json()
        assert detail["id"] == "job-1"
        assert detail["status"] == "PENDING"
        assert detail["entities"] == ["driver"]
        assert detail["features"] == ["driver.rating"]

    def test_create_job_generates_id(self, client):
        response = self.create_job(client, job_id=None)
        assert response.json()["id"].startswith("file-dataflowrunner-")

    def test_duplicate_job_is_internal_error(self, client):
        self.create_job(client)
        response = self.create_job(client)
        assert response.status_code == 500

    def test_invalid_import_spec_is_bad_request(self, client):
        response = self.create_job(client, import_spec={"type": "file", "entities": []})
        assert response.status_code == 400

    def test_get_and_list_jobs(self, client):
        self.create_job(client)

        assert client.get("/jobs/job-1").json()["runner"] == "DataflowRunner"
        assert [j["id"] for j in client.get("/jobs").json()["jobs"]] == ["job-1"]
        assert [j["id"] for j in client.get("/jobs", params={"entity": "driver"}).json()["jobs"]] == ["job-1"]
        assert client.get("/jobs", params={"feature": "rider.rating"}).json()["jobs"] == []

    def test_unknown_job_is_not_found(self, client):
        assert client.get("/jobs/missing").status_code == 404
        assert client.patch("/jobs/missing/status", json={"status": "RUNNING"}).status_code == 404
        assert client.delete("/jobs/missing").status_code == 404

    def test_status_update(self, client):
        self.create_job(client)

        response = client.patch("/jobs/job-1/status", json={"status": "COMPLETED"})
        assert response.status_code == 200
        assert response.json()["status"] == "COMPLETED"

    def test_external_id_update(self, client):
        self.create_job(client)

        response = client.put("/jobs/job-1/ext-id", params={"ext_id": "df-7"})
        assert response.json()["ext_id"] == "df-7"

    def test_metrics(self, client):
        self.create_job(client)

        response = client.post("/jobs/job-1/metrics", json={"name": "rows_read", "value": 12})
        assert response.status_code == 201
        assert response.json()["value"] == 12.0

        metrics = client.get("/jobs/job-1/metrics").json()["metrics"]
        assert [m["name"] for m in metrics] == ["rows_read"]

    def test_delete_job(self, client):
        self.create_job(client)

        assert client.delete("/jobs/job-1").status_code == 204
        assert client.get("/jobs/job-1").status_code == 404


class TestStrictTransitions:

    def test_conflict_status(self):
        config = RegistryConfig(database_url="sqlite://", strict_status_transitions=True)
        with TestClient(create_app(config)) as client:
            client.post("/jobs", json={
                "job_id": "job-1",
                "runner": "DataflowRunner",
                "import_spec": IMPORT_SPEC,
                "status": "COMPLETED",
            })

            response = client.patch("/jobs/job-1/status", json={"status": "RUNNING"})
            assert response.status_code == 409


# =============================================================
# TEST: Health
# =============================================================

class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["database"] == "ok"
