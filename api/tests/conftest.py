"""
Shared pytest configuration for all tests.
Sets up the test environment and common fleet fixtures.
"""
import os
import sys
from datetime import date, datetime, timezone
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load test environment variables before any imports
from dotenv import load_dotenv

# Load test-specific environment variables
test_env_path = Path(__file__).parent.parent / ".env.test"
if test_env_path.exists():
    load_dotenv(test_env_path, override=True)
else:
    # Fallback to hardcoded test values if .env.test doesn't exist
    os.environ["NEO4J_URI"] = "bolt://localhost:7688"
    os.environ["NEO4J_USER"] = "neo4j"
    os.environ["NEO4J_PASSWORD"] = "testpassword123"
    os.environ["API_KEY"] = "test-api-key"

from models.maintenance_task import MaintenanceTask, TaskPriority, TaskStatus
from models.technician import Technician
from models.vehicle import Vehicle


# Fixed reference time: Wednesday 15 January 2025, mid-morning UTC
REFERENCE_NOW = datetime(2025, 1, 15, 10, 30, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return REFERENCE_NOW


@pytest.fixture
def make_vehicle():
    """Factory for vehicles with sensible defaults."""
    def _make(vehicle_id="TRK-001", **overrides):
        data = {
            "vehicle_id": vehicle_id,
            "type": "Truck",
            "location_base": "Depot A",
            "mileage": 45680,
            "last_service_date": date(2024, 12, 16),
            "service_interval": "Monthly",
            "status": "Active",
        }
        data.update(overrides)
        return Vehicle(**data)
    return _make


@pytest.fixture
def make_technician():
    """Factory for technicians with sensible defaults."""
    def _make(technician_id="TECH-001", **overrides):
        data = {
            "technician_id": technician_id,
            "name": f"Technician {technician_id}",
            "assigned_depots": ["Depot A"],
            "max_tasks": 3,
            "email": f"{technician_id.lower()}@fleet.example",
            "phone": "+1-555-0100",
        }
        data.update(overrides)
        return Technician(**data)
    return _make


@pytest.fixture
def make_task():
    """Factory for maintenance tasks with sensible defaults."""
    def _make(task_id="TASK-1", **overrides):
        data = {
            "task_id": task_id,
            "vehicle_id": "TRK-001",
            "title": "Monthly Service & Maintenance",
            "description": "Full service",
            "priority": TaskPriority.MEDIUM,
            "status": TaskStatus.PENDING,
            "scheduled_date": date(2025, 1, 20),
            "estimated_duration": 4,
            "created_at": REFERENCE_NOW,
        }
        data.update(overrides)
        return MaintenanceTask(**data)
    return _make


@pytest.fixture
def sequential_ids():
    """Deterministic task ID factory: TASK-0001, TASK-0002, ..."""
    counter = {"value": 0}

    def _next_id():
        counter["value"] += 1
        return f"TASK-{counter['value']:04d}"
    return _next_id
