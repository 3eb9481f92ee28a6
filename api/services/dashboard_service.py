"""
Dashboard metrics over a fleet snapshot.

Pure functions; the reference time is always passed in.
"""

from datetime import datetime, timedelta
from typing import Dict, List

from models.dashboard import DashboardMetrics, DashboardSummary, TechnicianWorkload
from models.maintenance_task import MaintenanceTask, TaskStatus
from models.technician import Technician
from models.vehicle import Vehicle
from services.task_assigner import compute_technician_workload

UPCOMING_WINDOW_DAYS = 7
RECENT_COMPLETIONS_LIMIT = 6


def calculate_metrics(tasks: List[MaintenanceTask], now: datetime) -> DashboardMetrics:
    """Task counters and the average creation-to-completion time in days."""
    today = now.date()
    completion_days = [
        (task.completed_date - task.created_at.date()).days
        for task in tasks
        if task.status == TaskStatus.COMPLETED and task.completed_date
    ]

    return DashboardMetrics(
        total_tasks=len(tasks),
        overdue_tasks=sum(1 for task in tasks if task.is_overdue(today)),
        completed_tasks=sum(1 for task in tasks if task.status == TaskStatus.COMPLETED),
        pending_tasks=sum(1 for task in tasks if task.status == TaskStatus.PENDING),
        in_progress_tasks=sum(1 for task in tasks if task.status == TaskStatus.IN_PROGRESS),
        average_completion_days=(
            round(sum(completion_days) / len(completion_days), 2) if completion_days else None
        ),
    )


def technician_workloads(
    tasks: List[MaintenanceTask],
    technicians: List[Technician]
) -> List[TechnicianWorkload]:
    workload = compute_technician_workload(tasks, technicians)
    return [
        TechnicianWorkload(
            technician_id=tech.technician_id,
            name=tech.name,
            current_tasks=workload[tech.technician_id],
            max_tasks=tech.max_tasks,
            workload_percentage=round(workload[tech.technician_id] / tech.max_tasks * 100, 1),
        )
        for tech in technicians
    ]


def upcoming_tasks(tasks: List[MaintenanceTask], now: datetime) -> List[MaintenanceTask]:
    """Open tasks scheduled from today through the next seven days, soonest first."""
    today = now.date()
    horizon = today + timedelta(days=UPCOMING_WINDOW_DAYS)
    upcoming = [
        task for task in tasks
        if task.status != TaskStatus.COMPLETED and today <= task.scheduled_date <= horizon
    ]
    return sorted(upcoming, key=lambda task: task.scheduled_date)


def recent_completions(tasks: List[MaintenanceTask]) -> List[MaintenanceTask]:
    completed = [
        task for task in tasks
        if task.status == TaskStatus.COMPLETED and task.completed_date
    ]
    completed.sort(key=lambda task: task.completed_date, reverse=True)
    return completed[:RECENT_COMPLETIONS_LIMIT]


def vehicles_by_location(vehicles: List[Vehicle]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for vehicle in vehicles:
        counts[vehicle.location_base.value] = counts.get(vehicle.location_base.value, 0) + 1
    return counts


def build_dashboard(
    tasks: List[MaintenanceTask],
    technicians: List[Technician],
    vehicles: List[Vehicle],
    now: datetime
) -> DashboardSummary:
    """Assemble every dashboard section from one snapshot."""
    return DashboardSummary(
        metrics=calculate_metrics(tasks, now),
        technician_workloads=technician_workloads(tasks, technicians),
        upcoming_tasks=upcoming_tasks(tasks, now),
        recent_completions=recent_completions(tasks),
        vehicles_by_location=vehicles_by_location(vehicles),
    )
