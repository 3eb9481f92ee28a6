"""
Maintenance Task Generator.

Decides which vehicles need a new maintenance task and builds those tasks.
This module is pure: it reads the vehicles and existing tasks it is given,
never mutates them, and takes the reference time, the task ID factory and
the random source as parameters so callers (and tests) control every input.
"""

import random
import string
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Dict, Iterable, List, Optional

from models.maintenance_task import MaintenanceTask, TaskPriority, TaskStatus
from models.vehicle import ServiceInterval, Vehicle


GENERATION_HORIZON_DAYS = 30
DUPLICATE_WINDOW_DAYS = 7
FORCED_SCHEDULE_SPREAD_DAYS = 14

INTERVAL_DAYS = {
    ServiceInterval.WEEKLY: 7,
    ServiceInterval.BI_WEEKLY: 14,
}

TASK_TEMPLATES = {
    ServiceInterval.WEEKLY: {
        "title": "Weekly Safety Inspection",
        "description": "Basic safety check including lights, brakes, and fluid levels",
        "duration": 1,
    },
    ServiceInterval.BI_WEEKLY: {
        "title": "Bi-weekly Maintenance Check",
        "description": "Comprehensive inspection of key systems and components",
        "duration": 2,
    },
    ServiceInterval.MONTHLY: {
        "title": "Monthly Service & Maintenance",
        "description": "Full service including oil change, filter replacement, and system diagnostics",
        "duration": 4,
    },
}

FORCED_TASK_TEMPLATES = [
    {
        "title": "Preventive Maintenance Check",
        "description": "General preventive maintenance including fluid top-up, tyre pressure and belt inspection",
        "duration": 2,
    },
    {
        "title": "System Diagnostics",
        "description": "Electronic diagnostics scan of engine, transmission and braking systems",
        "duration": 3,
    },
    {
        "title": "Safety Compliance Inspection",
        "description": "Regulatory safety compliance review of lights, brakes, mirrors and emergency equipment",
        "duration": 2,
    },
]

# A vehicle with a task in one of these states is skipped by forced generation
OPEN_STATUSES = (TaskStatus.PENDING, TaskStatus.ASSIGNED)

_ID_ALPHABET = string.digits + string.ascii_uppercase


def generate_task_id() -> str:
    """
    Build a task ID from the current epoch milliseconds and a random suffix.

    Returns:
        ID such as ``TASK-1735689600000-K3ZQ``
    """
    timestamp = int(datetime.now(timezone.utc).timestamp() * 1000)
    suffix = "".join(random.choices(_ID_ALPHABET, k=4))
    return f"TASK-{timestamp}-{suffix}"


def add_months(day: date, months: int) -> date:
    """
    Add calendar months keeping the day of month and rolling any overflow
    into the following month.

    Handles:
    - 2024-12-15 + 1 -> 2025-01-15
    - 2025-01-31 + 1 -> 2025-03-03
    - 2024-01-31 + 1 -> 2024-03-02 (leap year)

    Args:
        day: Starting date
        months: Number of months to add

    Returns:
        The shifted date
    """
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    return date(year, month, 1) + timedelta(days=day.day - 1)


def calculate_next_due_date(last_service_date: date, interval: ServiceInterval) -> date:
    """Date the next service falls due for a vehicle."""
    if interval == ServiceInterval.MONTHLY:
        return add_months(last_service_date, 1)
    return last_service_date + timedelta(days=INTERVAL_DAYS[interval])


def priority_for_mileage(mileage: int) -> TaskPriority:
    """Generated tasks are never Critical; mileage only raises them to High."""
    if mileage > 50000:
        return TaskPriority.HIGH
    if mileage > 30000:
        return TaskPriority.MEDIUM
    return TaskPriority.LOW


def _tasks_by_vehicle(tasks: Iterable[MaintenanceTask]) -> Dict[str, List[MaintenanceTask]]:
    grouped: Dict[str, List[MaintenanceTask]] = {}
    for task in tasks:
        grouped.setdefault(task.vehicle_id, []).append(task)
    return grouped


def build_maintenance_task(
    vehicle: Vehicle,
    scheduled_date: date,
    template: Dict,
    task_id: str,
    created_at: datetime
) -> MaintenanceTask:
    """Create a Pending task for a vehicle from a title/description/duration template."""
    return MaintenanceTask(
        task_id=task_id,
        vehicle_id=vehicle.vehicle_id,
        title=template["title"],
        description=template["description"],
        priority=priority_for_mileage(vehicle.mileage),
        status=TaskStatus.PENDING,
        scheduled_date=scheduled_date,
        estimated_duration=template["duration"],
        before_photos=[],
        after_photos=[],
        parts_used=[],
        created_at=created_at,
    )


def generate_maintenance_tasks(
    vehicles: List[Vehicle],
    existing_tasks: List[MaintenanceTask],
    force_generate: bool = False,
    *,
    now: Optional[datetime] = None,
    id_factory: Optional[Callable[[], str]] = None,
    rng: Optional[random.Random] = None,
    horizon_days: int = GENERATION_HORIZON_DAYS,
    duplicate_window_days: int = DUPLICATE_WINDOW_DAYS,
    forced_spread_days: int = FORCED_SCHEDULE_SPREAD_DAYS
) -> List[MaintenanceTask]:
    """
    Produce the maintenance tasks the fleet needs next.

    Normal mode schedules a task on each vehicle's next due date when that
    date falls within the next ``horizon_days`` and no existing task for the
    vehicle is scheduled within ``duplicate_window_days`` of it.

    Force mode ignores due dates: every vehicle without a Pending or
    Assigned task gets a task built from a random forced template, scheduled
    a random number of days (below ``forced_spread_days``) from today.

    Args:
        vehicles: Fleet snapshot
        existing_tasks: All known tasks, used for duplicate suppression
        force_generate: Whether to use force mode
        now: Reference time, defaults to the current UTC time
        id_factory: Zero-argument callable returning a new task ID
        rng: Random source for force mode
        horizon_days: Look-ahead window for due dates
        duplicate_window_days: Duplicate suppression window around the due date
        forced_spread_days: Scheduling spread for forced tasks

    Returns:
        Newly built tasks, in vehicle order. Nothing is persisted.
    """
    now = now or datetime.now(timezone.utc)
    id_factory = id_factory or generate_task_id
    rng = rng or random.Random()

    today = now.date()
    horizon = today + timedelta(days=horizon_days)
    window = timedelta(days=duplicate_window_days)
    tasks_by_vehicle = _tasks_by_vehicle(existing_tasks)

    new_tasks: List[MaintenanceTask] = []

    for vehicle in vehicles:
        vehicle_tasks = tasks_by_vehicle.get(vehicle.vehicle_id, [])

        if force_generate:
            if any(task.status in OPEN_STATUSES for task in vehicle_tasks):
                continue
            template = rng.choice(FORCED_TASK_TEMPLATES)
            scheduled_date = today + timedelta(days=rng.randrange(forced_spread_days))
        else:
            next_due = calculate_next_due_date(vehicle.last_service_date, vehicle.service_interval)
            if not today <= next_due <= horizon:
                continue
            if any(abs(task.scheduled_date - next_due) < window for task in vehicle_tasks):
                continue
            template = TASK_TEMPLATES[vehicle.service_interval]
            scheduled_date = next_due

        new_tasks.append(
            build_maintenance_task(vehicle, scheduled_date, template, id_factory(), now)
        )

    return new_tasks
