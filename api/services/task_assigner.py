"""
Maintenance Task Assigner.

Greedy single-pass assignment of Pending tasks to technicians. Workload is
recomputed from the task snapshot on every call; no cached counter is read.
"""

from typing import Dict, Iterable, List, Optional

from models.maintenance_task import ACTIVE_STATUSES, MaintenanceTask, TaskStatus
from models.technician import Technician
from models.vehicle import Vehicle


def compute_technician_workload(
    tasks: Iterable[MaintenanceTask],
    technicians: Iterable[Technician]
) -> Dict[str, int]:
    """
    Count Assigned and In Progress tasks per technician.

    Args:
        tasks: Task snapshot
        technicians: Technicians to report on

    Returns:
        Mapping of technician_id to active task count (0 for idle technicians)
    """
    workload = {tech.technician_id: 0 for tech in technicians}
    for task in tasks:
        if task.technician_id in workload and task.status in ACTIVE_STATUSES:
            workload[task.technician_id] += 1
    return workload


def _least_loaded(candidates: List[Technician], workload: Dict[str, int]) -> Optional[Technician]:
    # min() keeps the first of equally loaded technicians
    if not candidates:
        return None
    return min(candidates, key=lambda tech: workload[tech.technician_id])


def select_technician(
    vehicle: Vehicle,
    technicians: List[Technician],
    workload: Dict[str, int]
) -> Optional[Technician]:
    """
    Pick a technician for a task on the given vehicle.

    Technicians stationed at the vehicle's depot are preferred; when all of
    them are at capacity any technician with spare capacity is used.

    Returns:
        The least loaded eligible technician, or None when everyone is full
    """
    available = [
        tech for tech in technicians
        if workload[tech.technician_id] < tech.max_tasks
    ]
    at_depot = [tech for tech in available if vehicle.location_base in tech.assigned_depots]
    if at_depot:
        return _least_loaded(at_depot, workload)
    return _least_loaded(available, workload)


def sort_pending_tasks(tasks: Iterable[MaintenanceTask]) -> List[MaintenanceTask]:
    """Pending tasks, most urgent priority first, then earliest scheduled date."""
    pending = [task for task in tasks if task.status == TaskStatus.PENDING]
    return sorted(pending, key=lambda task: (task.priority.rank, task.scheduled_date))


def assign_tasks_to_technicians(
    tasks: List[MaintenanceTask],
    technicians: List[Technician],
    vehicles: List[Vehicle]
) -> List[MaintenanceTask]:
    """
    Assign Pending tasks to technicians.

    Tasks are visited in priority / scheduled-date order. Each assignment
    increments the in-memory workload so later tasks in the same pass see
    it. Tasks whose vehicle is unknown, or for which no technician has
    capacity, stay Pending.

    Args:
        tasks: Full task snapshot
        technicians: Available technicians
        vehicles: Fleet snapshot used to resolve task depots

    Returns:
        The task list in its original order. Assigned tasks are new copies
        with technician_id set and status Assigned; all others are the
        original objects.
    """
    workload = compute_technician_workload(tasks, technicians)
    vehicles_by_id = {vehicle.vehicle_id: vehicle for vehicle in vehicles}
    # Keyed by object identity so tasks sharing an ID are handled separately
    assigned: Dict[int, MaintenanceTask] = {}

    for task in sort_pending_tasks(tasks):
        vehicle = vehicles_by_id.get(task.vehicle_id)
        if vehicle is None:
            continue

        technician = select_technician(vehicle, technicians, workload)
        if technician is None:
            continue

        assigned[id(task)] = task.model_copy(update={
            "technician_id": technician.technician_id,
            "status": TaskStatus.ASSIGNED,
        })
        workload[technician.technician_id] += 1

    return [assigned.get(id(task), task) for task in tasks]
