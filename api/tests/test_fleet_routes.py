"""
Unit tests for vehicle and technician API routes, including CSV import.
"""

import base64
from unittest.mock import Mock, patch

import pytest
from fastapi.testclient import TestClient
from neo4j.exceptions import ServiceUnavailable

from main import app


client = TestClient(app)
headers = {"X-API-Key": "test-api-key"}

SAMPLE_CSV = """ID,Type,Location Base,Mileage,Last Service Date,Service Interval,Status
TRK-001,Truck,Depot A,"45,680",2024-12-16,Monthly,Active
VAN-205,van,depot b,28900,01/05/2025,Bi-weekly,
MOTO-301,Motorcycle,Field Office,8900,12.01.2025,weekly,In Service"""

INVALID_CSV = """ID,Type,Location Base,Mileage,Last Service Date,Service Interval
TRK-009,Truck,Depot A,12000,2025-01-01,Monthly
BUS-001,Bus,Depot A,1000,2025-01-01,Monthly
,Car,Depot C,-5,not a date,Daily"""


def _encode(text: str) -> str:
    return base64.b64encode(text.encode('utf-8')).decode('ascii')


@pytest.fixture
def vehicle_repo():
    repo = Mock()
    repo.exists.return_value = False
    repo.bulk_create.side_effect = lambda vehicles: {"created": len(vehicles)}
    with patch('routes.vehicle_routes.repo', repo):
        yield repo


@pytest.fixture
def technician_repo():
    repo = Mock()
    with patch('routes.technician_routes.repo', repo):
        yield repo


class TestVehicleRoutes:

    def test_create_vehicle(self, vehicle_repo):
        vehicle_repo.create.return_value = {"vehicle_id": "TRK-001"}
        payload = {
            "vehicle_id": "TRK-001",
            "type": "Truck",
            "location_base": "Depot A",
            "mileage": 45680,
            "last_service_date": "2024-12-16",
            "service_interval": "Monthly",
        }

        response = client.post("/vehicles/", json=payload, headers=headers)

        assert response.status_code == 201
        created = vehicle_repo.create.call_args[0][0]
        assert created.status == "Active"

    def test_create_duplicate_vehicle(self, vehicle_repo):
        vehicle_repo.exists.return_value = True
        payload = {
            "vehicle_id": "TRK-001",
            "type": "Truck",
            "location_base": "Depot A",
            "mileage": 1,
            "last_service_date": "2024-12-16",
            "service_interval": "Monthly",
        }

        response = client.post("/vehicles/", json=payload, headers=headers)

        assert response.status_code == 409
        assert "already exists" in response.json()["detail"]

    def test_reject_unknown_depot(self, vehicle_repo):
        payload = {
            "vehicle_id": "TRK-001",
            "type": "Truck",
            "location_base": "Depot Z",
            "mileage": 1,
            "last_service_date": "2024-12-16",
            "service_interval": "Monthly",
        }

        response = client.post("/vehicles/", json=payload, headers=headers)

        assert response.status_code == 422

    def test_list_vehicles_by_depot(self, vehicle_repo):
        vehicle_repo.get_all.return_value = []

        response = client.get("/vehicles/?location_base=Field%20Office", headers=headers)

        assert response.status_code == 200
        assert vehicle_repo.get_all.call_args.kwargs["filters"]["location_base"] == "Field Office"

    def test_update_missing_vehicle(self, vehicle_repo):
        vehicle_repo.exists.return_value = False

        response = client.patch("/vehicles/NOPE", json={"mileage": 10}, headers=headers)

        assert response.status_code == 404

    def test_bulk_rejects_duplicate_ids(self, vehicle_repo):
        vehicle = {
            "vehicle_id": "CAR-101",
            "type": "Car",
            "location_base": "Field Office",
            "mileage": 15600,
            "last_service_date": "2025-01-13",
            "service_interval": "Weekly",
        }

        response = client.post("/vehicles/bulk", json=[vehicle, vehicle], headers=headers)

        assert response.status_code == 400


class TestVehicleImport:

    def test_import_normalizes_rows(self, vehicle_repo):
        response = client.post(
            "/vehicles/import",
            json={"csv_content": _encode(SAMPLE_CSV)},
            headers=headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total_records"] == 3
        assert data["vehicles_created"] == 3
        assert data["validation_errors"] == 0

        created = {v.vehicle_id: v for v in vehicle_repo.bulk_create.call_args[0][0]}
        assert created["TRK-001"].mileage == 45680
        assert created["VAN-205"].location_base == "Depot B"
        assert created["VAN-205"].last_service_date.isoformat() == "2025-01-05"
        assert created["MOTO-301"].status == "In Service"
        assert created["MOTO-301"].last_service_date.isoformat() == "2025-01-12"

    def test_import_skips_existing(self, vehicle_repo):
        vehicle_repo.exists.side_effect = lambda vehicle_id: vehicle_id == "TRK-001"

        response = client.post(
            "/vehicles/import",
            json={"csv_content": _encode(SAMPLE_CSV)},
            headers=headers,
        )

        assert response.json()["vehicles_skipped"] == 1
        assert response.json()["vehicles_created"] == 2

    def test_import_reports_invalid_rows(self, vehicle_repo):
        response = client.post(
            "/vehicles/import",
            json={"csv_content": _encode(INVALID_CSV)},
            headers=headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["vehicles_created"] == 1
        assert data["validation_errors"] == 2
        assert [error["row_number"] for error in data["errors"]] == [3, 4]

    def test_import_strict_mode_fails_on_invalid_row(self, vehicle_repo):
        response = client.post(
            "/vehicles/import",
            json={"csv_content": _encode(INVALID_CSV), "skip_invalid": False},
            headers=headers,
        )

        assert response.status_code == 422
        assert "Row 3" in response.json()["detail"]
        vehicle_repo.bulk_create.assert_not_called()

    def test_import_rejects_bad_base64(self, vehicle_repo):
        response = client.post("/vehicles/import", json={"csv_content": "not base64!"}, headers=headers)

        assert response.status_code == 422

    def test_import_rejects_empty_csv(self, vehicle_repo):
        response = client.post("/vehicles/import", json={"csv_content": _encode("\n\n")}, headers=headers)

        assert response.status_code == 400


class TestTechnicianRoutes:

    def test_create_technician(self, technician_repo):
        technician_repo.exists.return_value = False
        technician_repo.create.return_value = {"technician_id": "TECH-002", "active_task_count": 0}
        payload = {
            "technician_id": "TECH-002",
            "name": "Sarah Williams",
            "assigned_depots": ["Depot B"],
            "max_tasks": 3,
        }

        response = client.post("/technicians/", json=payload, headers=headers)

        assert response.status_code == 201
        assert response.json()["active_task_count"] == 0

    def test_technician_needs_a_depot(self, technician_repo):
        payload = {"technician_id": "TECH-002", "name": "Sarah Williams", "assigned_depots": []}

        response = client.post("/technicians/", json=payload, headers=headers)

        assert response.status_code == 422

    def test_list_by_depot(self, technician_repo):
        technician_repo.get_all.return_value = []

        response = client.get("/technicians/?depot=Depot%20A", headers=headers)

        assert response.status_code == 200
        technician_repo.get_all.assert_called_once_with(depot="Depot A")

    def test_tasks_for_unknown_technician(self, technician_repo):
        technician_repo.exists.return_value = False

        response = client.get("/technicians/TECH-404/tasks", headers=headers)

        assert response.status_code == 404

    def test_tasks_for_technician(self, technician_repo):
        technician_repo.exists.return_value = True
        task_repo = Mock()
        task_repo.get_by_technician.return_value = [{"task_id": "TASK-1", "technician_id": "TECH-001"}]

        with patch('routes.technician_routes.task_repo', task_repo):
            response = client.get("/technicians/TECH-001/tasks", headers=headers)

        assert response.status_code == 200
        assert response.json()[0]["task_id"] == "TASK-1"


class TestApplication:

    def test_health_needs_no_api_key(self):
        with patch('main.db.verify_connectivity', return_value=False):
            response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["database"] == "unhealthy"

    def test_database_outage_maps_to_503(self, vehicle_repo):
        vehicle_repo.get_by_id.side_effect = ServiceUnavailable("connection refused")

        response = client.get("/vehicles/TRK-001", headers=headers)

        assert response.status_code == 503
        assert response.json()["detail"] == "Fleet database unavailable"
