"""
Maintenance Scheduler Service.

Coordinates the task generation and assignment runs: loads a fresh snapshot
from the repositories, hands it to the pure generator and assigner, and
persists what they produce. Persistence failures are logged and propagated
to the caller without retry.
"""

import logging
import random
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from config import settings
from models.maintenance_task import MaintenanceTask, TaskStatus
from models.technician import Technician
from models.vehicle import Vehicle
from repositories.maintenance_task_repository import MaintenanceTaskRepository
from repositories.technician_repository import TechnicianRepository
from repositories.vehicle_repository import VehicleRepository
from services.task_assigner import assign_tasks_to_technicians
from services.task_generator import generate_maintenance_tasks, generate_task_id

logger = logging.getLogger(__name__)


@dataclass
class FleetSnapshot:
    vehicles: List[Vehicle] = field(default_factory=list)
    technicians: List[Technician] = field(default_factory=list)
    tasks: List[MaintenanceTask] = field(default_factory=list)


class MaintenanceScheduler:
    """
    Runs task generation and assignment against the persisted fleet.

    No locking is done: two schedulers running concurrently against the same
    database can both create a task for the same vehicle or overbook a
    technician. Callers are expected to serialize runs.
    """

    def __init__(
        self,
        vehicle_repo: Optional[VehicleRepository] = None,
        technician_repo: Optional[TechnicianRepository] = None,
        task_repo: Optional[MaintenanceTaskRepository] = None,
        clock: Optional[Callable[[], datetime]] = None,
        id_factory: Optional[Callable[[], str]] = None,
        rng: Optional[random.Random] = None
    ):
        """Initialize the scheduler with its repositories and injected time/ID sources."""
        self.vehicle_repo = vehicle_repo or VehicleRepository()
        self.technician_repo = technician_repo or TechnicianRepository()
        self.task_repo = task_repo or MaintenanceTaskRepository()
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.id_factory = id_factory or generate_task_id
        self.rng = rng or random.Random()

        # Track statistics for reporting
        self.stats = {
            "tasks_generated": 0,
            "tasks_persisted": 0,
            "tasks_assigned": 0,
            "tasks_left_pending": 0,
            "errors": []
        }

        # Generate unique run ID
        self.run_id = str(uuid.uuid4())
        self.start_time = datetime.now(timezone.utc)

    def load_snapshot(self, include_technicians: bool = True) -> FleetSnapshot:
        """
        Load vehicles, technicians and tasks from the database.

        Raises:
            Exception: Any repository error, after logging it
        """
        try:
            snapshot = FleetSnapshot(
                vehicles=self.vehicle_repo.get_models(),
                technicians=self.technician_repo.get_models() if include_technicians else [],
                tasks=self.task_repo.get_models(),
            )
        except Exception as e:
            logger.error(f"Failed to load fleet snapshot: {e}", exc_info=True)
            self.stats["errors"].append(str(e))
            raise

        logger.debug(
            f"Loaded snapshot: {len(snapshot.vehicles)} vehicles, "
            f"{len(snapshot.technicians)} technicians, {len(snapshot.tasks)} tasks"
        )
        return snapshot

    def preview_generation(self, force_generate: bool = False) -> List[MaintenanceTask]:
        """
        Compute the tasks a generation run would create, without storing them.

        Args:
            force_generate: Whether to use force mode

        Returns:
            The tasks that would be created
        """
        snapshot = self.load_snapshot(include_technicians=False)
        new_tasks = generate_maintenance_tasks(
            snapshot.vehicles,
            snapshot.tasks,
            force_generate,
            now=self.clock(),
            id_factory=self.id_factory,
            rng=self.rng,
            horizon_days=settings.generation_horizon_days,
            duplicate_window_days=settings.duplicate_window_days,
            forced_spread_days=settings.forced_schedule_spread_days,
        )
        self.stats["tasks_generated"] = len(new_tasks)
        logger.info(
            f"Generation {'(forced) ' if force_generate else ''}found "
            f"{len(new_tasks)} new tasks for {len(snapshot.vehicles)} vehicles"
        )
        return new_tasks

    def generate_tasks(self, force_generate: bool = False) -> List[MaintenanceTask]:
        """
        Generate and persist new maintenance tasks.

        Args:
            force_generate: Whether to use force mode

        Returns:
            The persisted tasks

        Raises:
            Exception: Any repository error, after logging it
        """
        new_tasks = self.preview_generation(force_generate)
        if not new_tasks:
            return []

        try:
            result = self.task_repo.bulk_create(new_tasks)
        except Exception as e:
            logger.error(f"Failed to persist {len(new_tasks)} generated tasks: {e}", exc_info=True)
            self.stats["errors"].append(str(e))
            raise

        self.stats["tasks_persisted"] = result.get("created", 0)
        logger.info(f"Persisted {self.stats['tasks_persisted']} generated tasks")
        return new_tasks

    def assign_pending_tasks(self) -> Dict:
        """
        Assign Pending tasks to technicians and persist the changed ones.

        Returns:
            dict: pending_before, assigned tasks, assignments mapping and
            the number of tasks still Pending

        Raises:
            Exception: Any repository error, after logging it
        """
        snapshot = self.load_snapshot()
        pending_before = sum(1 for task in snapshot.tasks if task.status == TaskStatus.PENDING)

        updated = assign_tasks_to_technicians(snapshot.tasks, snapshot.technicians, snapshot.vehicles)
        changed = [
            new for old, new in zip(snapshot.tasks, updated)
            if new is not old
        ]

        if changed:
            try:
                self.task_repo.update_assignments(changed)
            except Exception as e:
                logger.error(f"Failed to persist {len(changed)} task assignments: {e}", exc_info=True)
                self.stats["errors"].append(str(e))
                raise

        self.stats["tasks_assigned"] = len(changed)
        self.stats["tasks_left_pending"] = pending_before - len(changed)

        if self.stats["tasks_left_pending"]:
            logger.warning(
                f"{self.stats['tasks_left_pending']} pending tasks could not be assigned "
                f"(unknown vehicle or no technician capacity)"
            )
        logger.info(f"Assigned {len(changed)} of {pending_before} pending tasks")

        return {
            "pending_before": pending_before,
            "tasks": changed,
            "assignments": {task.task_id: task.technician_id for task in changed},
            "unassigned_count": self.stats["tasks_left_pending"],
        }

