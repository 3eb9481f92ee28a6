"""
Unit tests for the maintenance scheduling and dashboard routes.

The scheduler dependency is overridden with one wired to mocked
repositories and a fixed clock.
"""

import random
from datetime import date
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient
from neo4j.exceptions import ServiceUnavailable

from main import app
from models.maintenance_task import TaskPriority, TaskStatus
from routes.maintenance_routes import get_scheduler
from services.maintenance_scheduler import MaintenanceScheduler


client = TestClient(app)
headers = {"X-API-Key": "test-api-key"}


@pytest.fixture
def repos(make_vehicle, make_technician):
    vehicle_repo = Mock()
    vehicle_repo.get_models.return_value = [
        make_vehicle("TRK-001", location_base="Depot A", mileage=67800),
        make_vehicle("CAR-101", location_base="Field Office", mileage=15600,
                     service_interval="Weekly", last_service_date=date(2025, 1, 13)),
    ]
    technician_repo = Mock()
    technician_repo.get_models.return_value = [
        make_technician("TECH-001", name="Mike Johnson", assigned_depots=["Depot A", "Field Office"]),
        make_technician("TECH-004", name="Lisa Rodriguez", assigned_depots=["Field Office"], max_tasks=2),
    ]
    task_repo = Mock()
    task_repo.get_models.return_value = []
    task_repo.bulk_create.side_effect = lambda tasks: {"created": len(tasks)}
    task_repo.update_assignments.side_effect = lambda tasks: {"updated": len(tasks)}
    return vehicle_repo, technician_repo, task_repo


@pytest.fixture(autouse=True)
def scheduler(repos, now, sequential_ids):
    vehicle_repo, technician_repo, task_repo = repos
    scheduler = MaintenanceScheduler(
        vehicle_repo=vehicle_repo,
        technician_repo=technician_repo,
        task_repo=task_repo,
        clock=lambda: now,
        id_factory=sequential_ids,
        rng=random.Random(7),
    )
    app.dependency_overrides[get_scheduler] = lambda: scheduler
    yield scheduler
    app.dependency_overrides.clear()


class TestGenerationRoutes:

    def test_preview(self, repos):
        _, _, task_repo = repos

        response = client.post("/maintenance/generate/preview", json={}, headers=headers)

        assert response.status_code == 200
        data = response.json()
        assert data["persisted"] is False
        assert data["force_generate"] is False
        assert data["generated_count"] == 2
        assert data["tasks"][0]["vehicle_id"] == "TRK-001"
        assert data["tasks"][0]["priority"] == "High"
        assert data["tasks"][1]["title"] == "Weekly Safety Inspection"
        task_repo.bulk_create.assert_not_called()

    def test_generate(self, repos, scheduler):
        _, _, task_repo = repos

        response = client.post("/maintenance/generate", json={"force_generate": False}, headers=headers)

        assert response.status_code == 201
        data = response.json()
        assert data["persisted"] is True
        assert data["run_id"] == scheduler.run_id
        assert [task["task_id"] for task in data["tasks"]] == ["TASK-0001", "TASK-0002"]
        task_repo.bulk_create.assert_called_once()

    def test_forced_generate_skips_vehicles_with_open_tasks(self, repos, make_task):
        _, _, task_repo = repos
        task_repo.get_models.return_value = [make_task("OPEN", vehicle_id="TRK-001")]

        response = client.post("/maintenance/generate", json={"force_generate": True}, headers=headers)

        assert response.status_code == 201
        assert [task["vehicle_id"] for task in response.json()["tasks"]] == ["CAR-101"]

    def test_generate_persistence_failure(self, repos):
        _, _, task_repo = repos
        task_repo.bulk_create.side_effect = ServiceUnavailable("Neo4j is down")

        response = client.post("/maintenance/generate", json={}, headers=headers)

        assert response.status_code == 500


class TestAssignmentRoute:

    def test_assign(self, repos, make_task):
        _, _, task_repo = repos
        task_repo.get_models.return_value = [
            make_task("T-TRUCK", vehicle_id="TRK-001", priority=TaskPriority.CRITICAL),
            make_task("T-CAR", vehicle_id="CAR-101", scheduled_date=date(2025, 1, 20)),
            make_task("T-DONE", vehicle_id="CAR-101", status=TaskStatus.COMPLETED),
        ]

        response = client.post("/maintenance/assign", headers=headers)

        assert response.status_code == 200
        data = response.json()
        assert data["pending_before"] == 2
        assert data["assigned_count"] == 2
        assert data["unassigned_count"] == 0
        assert data["assignments"] == {"T-TRUCK": "TECH-001", "T-CAR": "TECH-004"}

    def test_assign_failure(self, repos, make_task):
        _, _, task_repo = repos
        task_repo.get_models.return_value = [make_task("T-TRUCK", vehicle_id="TRK-001")]
        task_repo.update_assignments.side_effect = ServiceUnavailable("Neo4j is down")

        response = client.post("/maintenance/assign", headers=headers)

        assert response.status_code == 500


class TestDashboardRoute:

    def test_dashboard(self, repos, make_task):
        _, _, task_repo = repos
        task_repo.get_models.return_value = [
            make_task("LATE", scheduled_date=date(2025, 1, 2)),
            make_task("ACTIVE", technician_id="TECH-004", status=TaskStatus.IN_PROGRESS,
                      scheduled_date=date(2025, 1, 16)),
        ]

        response = client.get("/dashboard/", headers=headers)

        assert response.status_code == 200
        data = response.json()
        assert data["metrics"]["total_tasks"] == 2
        assert data["metrics"]["overdue_tasks"] == 1
        assert data["metrics"]["average_completion_days"] is None
        workloads = {w["technician_id"]: w for w in data["technician_workloads"]}
        assert workloads["TECH-004"]["workload_percentage"] == 50.0
        assert [task["task_id"] for task in data["upcoming_tasks"]] == ["ACTIVE"]
        assert data["vehicles_by_location"] == {"Depot A": 1, "Field Office": 1}
