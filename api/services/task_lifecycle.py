"""
Task lifecycle transitions.

Pending -> Assigned -> In Progress -> Completed. Tasks never move backwards
and are never cancelled here. Each transition returns an updated copy and
leaves the input task untouched.
"""

from datetime import date, datetime, timezone
from typing import List, Optional

from models.maintenance_request import TaskCompletionRequest
from models.maintenance_task import MaintenanceTask, TaskStatus


class TaskTransitionError(ValueError):
    """Raised when a task is asked to move to a state it cannot reach."""

    def __init__(self, task_id: str, current: TaskStatus, target: TaskStatus):
        self.task_id = task_id
        self.current = current
        self.target = target
        super().__init__(
            f"Task {task_id} cannot move from {current.value} to {target.value}"
        )


class MissingSignatureError(TaskTransitionError):
    """Raised when completion is attempted without a digital signature."""

    def __init__(self, task_id: str):
        super().__init__(task_id, TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED)
        self.args = (f"Task {task_id} requires a digital signature to complete",)


def _require_status(task: MaintenanceTask, expected: TaskStatus, target: TaskStatus) -> None:
    if task.status != expected:
        raise TaskTransitionError(task.task_id, task.status, target)


def assign_task(task: MaintenanceTask, technician_id: str) -> MaintenanceTask:
    """Manually assign a Pending task to a technician."""
    _require_status(task, TaskStatus.PENDING, TaskStatus.ASSIGNED)
    return task.model_copy(update={
        "technician_id": technician_id,
        "status": TaskStatus.ASSIGNED,
    })


def start_task(task: MaintenanceTask) -> MaintenanceTask:
    """Technician starts work on an Assigned task."""
    _require_status(task, TaskStatus.ASSIGNED, TaskStatus.IN_PROGRESS)
    return task.model_copy(update={"status": TaskStatus.IN_PROGRESS})


def complete_task(
    task: MaintenanceTask,
    completion: TaskCompletionRequest,
    now: Optional[datetime] = None
) -> MaintenanceTask:
    """
    Complete an In Progress task with its evidence.

    Args:
        task: Task being completed
        completion: Submitted completion form
        now: Reference time for the completed date, defaults to current UTC time

    Returns:
        Completed copy of the task

    Raises:
        TaskTransitionError: If the task is not In Progress
        MissingSignatureError: If the signature is blank
    """
    _require_status(task, TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED)
    if not completion.digital_signature or not completion.digital_signature.strip():
        raise MissingSignatureError(task.task_id)

    now = now or datetime.now(timezone.utc)
    return task.model_copy(update={
        "status": TaskStatus.COMPLETED,
        "completed_date": now.date(),
        "before_photos": list(completion.before_photos),
        "after_photos": list(completion.after_photos),
        "parts_used": list(completion.parts_used),
        "notes": completion.notes,
        "digital_signature": completion.digital_signature,
    })


def overdue_tasks(tasks: List[MaintenanceTask], today: date) -> List[MaintenanceTask]:
    """Tasks not completed whose scheduled date has passed."""
    return [task for task in tasks if task.is_overdue(today)]
