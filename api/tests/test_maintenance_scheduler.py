"""
Unit tests for the MaintenanceScheduler service.

Repositories are replaced with mocks so generation and assignment runs can be
checked end to end without a Neo4j instance.
"""

import random
from datetime import date
from unittest.mock import Mock

import pytest
from neo4j.exceptions import ServiceUnavailable

from models.maintenance_task import TaskPriority, TaskStatus
from services.maintenance_scheduler import FleetSnapshot, MaintenanceScheduler


class TestMaintenanceScheduler:
    """Test suite for MaintenanceScheduler."""

    @pytest.fixture
    def vehicle_repo(self, make_vehicle):
        repo = Mock()
        repo.get_models.return_value = [
            make_vehicle("TRK-001", location_base="Depot A"),
            make_vehicle("VAN-205", location_base="Depot B", service_interval="Weekly",
                         last_service_date=date(2025, 1, 12)),
        ]
        return repo

    @pytest.fixture
    def technician_repo(self, make_technician):
        repo = Mock()
        repo.get_models.return_value = [
            make_technician("TECH-001", assigned_depots=["Depot A"]),
            make_technician("TECH-002", assigned_depots=["Depot B"]),
        ]
        return repo

    @pytest.fixture
    def task_repo(self):
        repo = Mock()
        repo.get_models.return_value = []
        repo.bulk_create.side_effect = lambda tasks: {"created": len(tasks)}
        repo.update_assignments.side_effect = lambda tasks: {"updated": len(tasks)}
        return repo

    @pytest.fixture
    def scheduler(self, vehicle_repo, technician_repo, task_repo, now, sequential_ids):
        return MaintenanceScheduler(
            vehicle_repo=vehicle_repo,
            technician_repo=technician_repo,
            task_repo=task_repo,
            clock=lambda: now,
            id_factory=sequential_ids,
            rng=random.Random(42),
        )

    def test_load_snapshot(self, scheduler):
        snapshot = scheduler.load_snapshot()

        assert isinstance(snapshot, FleetSnapshot)
        assert len(snapshot.vehicles) == 2
        assert len(snapshot.technicians) == 2
        assert snapshot.tasks == []

    def test_load_snapshot_without_technicians(self, scheduler, technician_repo):
        snapshot = scheduler.load_snapshot(include_technicians=False)

        assert snapshot.technicians == []
        technician_repo.get_models.assert_not_called()

    def test_preview_does_not_persist(self, scheduler, task_repo):
        tasks = scheduler.preview_generation()

        assert [task.task_id for task in tasks] == ["TASK-0001", "TASK-0002"]
        assert [task.vehicle_id for task in tasks] == ["TRK-001", "VAN-205"]
        task_repo.bulk_create.assert_not_called()
        assert scheduler.stats["tasks_generated"] == 2

    def test_generate_persists_new_tasks(self, scheduler, task_repo):
        tasks = scheduler.generate_tasks()

        task_repo.bulk_create.assert_called_once_with(tasks)
        assert scheduler.stats["tasks_persisted"] == 2

    def test_generate_with_nothing_due_skips_write(self, scheduler, task_repo, make_task):
        task_repo.get_models.return_value = [
            make_task("EXISTING-1", vehicle_id="TRK-001", scheduled_date=date(2025, 1, 16)),
            make_task("EXISTING-2", vehicle_id="VAN-205", scheduled_date=date(2025, 1, 19)),
        ]

        assert scheduler.generate_tasks() == []
        task_repo.bulk_create.assert_not_called()

    def test_forced_generation(self, scheduler, task_repo, make_task):
        task_repo.get_models.return_value = [
            make_task("OPEN", vehicle_id="TRK-001", status=TaskStatus.ASSIGNED, technician_id="TECH-001"),
        ]

        tasks = scheduler.generate_tasks(force_generate=True)

        assert [task.vehicle_id for task in tasks] == ["VAN-205"]

    def test_generate_propagates_write_failure(self, scheduler, task_repo):
        task_repo.bulk_create.side_effect = ServiceUnavailable("Neo4j is down")

        with pytest.raises(ServiceUnavailable):
            scheduler.generate_tasks()

        assert scheduler.stats["errors"] == ["Neo4j is down"]

    def test_snapshot_failure_propagates(self, scheduler, vehicle_repo):
        vehicle_repo.get_models.side_effect = ServiceUnavailable("Neo4j is down")

        with pytest.raises(ServiceUnavailable):
            scheduler.load_snapshot()

        assert len(scheduler.stats["errors"]) == 1

    def test_assign_pending_tasks(self, scheduler, task_repo, make_task):
        task_repo.get_models.return_value = [
            make_task("T-A", vehicle_id="TRK-001", priority=TaskPriority.HIGH),
            make_task("T-B", vehicle_id="VAN-205"),
            make_task("T-DONE", vehicle_id="TRK-001", status=TaskStatus.COMPLETED),
        ]

        result = scheduler.assign_pending_tasks()

        assert result["pending_before"] == 2
        assert result["assignments"] == {"T-A": "TECH-001", "T-B": "TECH-002"}
        assert result["unassigned_count"] == 0
        persisted = task_repo.update_assignments.call_args[0][0]
        assert [task.task_id for task in persisted] == ["T-A", "T-B"]
        assert all(task.status == TaskStatus.ASSIGNED for task in persisted)

    def test_assign_reports_leftovers(self, scheduler, task_repo, make_task):
        task_repo.get_models.return_value = [
            make_task("T-ORPHAN", vehicle_id="GHOST-9"),
        ]

        result = scheduler.assign_pending_tasks()

        assert result["assignments"] == {}
        assert result["unassigned_count"] == 1
        task_repo.update_assignments.assert_not_called()

    def test_assign_propagates_write_failure(self, scheduler, task_repo, make_task):
        task_repo.get_models.return_value = [make_task("T-A", vehicle_id="TRK-001")]
        task_repo.update_assignments.side_effect = ServiceUnavailable("Neo4j is down")

        with pytest.raises(ServiceUnavailable):
            scheduler.assign_pending_tasks()

    def test_each_scheduler_has_its_own_run_id(self, vehicle_repo, technician_repo, task_repo):
        first = MaintenanceScheduler(vehicle_repo, technician_repo, task_repo)
        second = MaintenanceScheduler(vehicle_repo, technician_repo, task_repo)

        assert first.run_id != second.run_id
