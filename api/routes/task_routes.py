"""
Maintenance Task Routes.

Manual task creation, lookup and the technician lifecycle actions
(assign, start, complete).
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query, status

from models.maintenance_request import (
    ManualTaskCreate,
    TaskAssignmentRequest,
    TaskCompletionRequest,
)
from models.maintenance_task import MaintenanceTask, TaskStatus
from repositories.maintenance_task_repository import MaintenanceTaskRepository
from repositories.technician_repository import TechnicianRepository
from repositories.vehicle_repository import VehicleRepository
from services.task_generator import generate_task_id
from services.task_lifecycle import (
    TaskTransitionError,
    assign_task,
    complete_task,
    start_task,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/tasks",
    tags=["tasks"],
    responses={
        404: {"description": "Task, vehicle or technician not found"},
        409: {"description": "Invalid lifecycle transition"}
    }
)
repo = MaintenanceTaskRepository()
vehicle_repo = VehicleRepository()
technician_repo = TechnicianRepository()


def _load_task(task_id: str) -> MaintenanceTask:
    record = repo.get_by_id(task_id)
    if not record:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Task {task_id} not found"
        )
    return MaintenanceTask(**record)


def _save(task: MaintenanceTask) -> Dict:
    result = repo.save(task)
    if not result:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update task {task.task_id}"
        )
    return result


@router.post("/", response_model=Dict, status_code=status.HTTP_201_CREATED)
async def create_task(request: ManualTaskCreate):
    """Create a manual maintenance task (always Pending)"""
    if not vehicle_repo.exists(request.vehicle_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Vehicle {request.vehicle_id} not found"
        )

    task = MaintenanceTask(
        task_id=generate_task_id(),
        status=TaskStatus.PENDING,
        **request.model_dump()
    )

    result = repo.create(task)
    if not result:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create task"
        )

    logger.info(f"Created manual task {task.task_id} for vehicle {task.vehicle_id}")
    return result


@router.get("/", response_model=List[Dict])
async def get_tasks(
    skip: int = Query(0, ge=0, description="Number of items to skip"),
    limit: int = Query(100, ge=1, le=1000, description="Number of items to return"),
    task_status: Optional[TaskStatus] = Query(None, alias="status", description="Filter by stored status"),
    vehicle_id: Optional[str] = Query(None, description="Filter by vehicle"),
    technician_id: Optional[str] = Query(None, description="Filter by technician"),
    overdue: Optional[bool] = Query(None, description="Only overdue (true) or only on-time (false) tasks")
):
    """Get tasks with pagination and filters"""
    filters = {
        'status': task_status,
        'vehicle_id': vehicle_id,
        'technician_id': technician_id,
    }

    if overdue is None:
        return repo.get_all(skip=skip, limit=limit, filters=filters)

    # Overdue is computed, not stored, so it is filtered after loading
    today = datetime.now(timezone.utc).date()
    tasks = [
        record for record in repo.get_all(filters=filters)
        if MaintenanceTask(**record).is_overdue(today) == overdue
    ]
    return tasks[skip:skip + limit]


@router.get("/{task_id}", response_model=Dict)
async def get_task(task_id: str):
    """Get a task by identifier, with its presentation status"""
    record = repo.get_by_id(task_id)
    if not record:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Task {task_id} not found"
        )
    task = MaintenanceTask(**record)
    record['display_status'] = task.display_status(datetime.now(timezone.utc).date()).value
    return record


@router.post("/{task_id}/assign", response_model=Dict)
async def assign_task_to_technician(task_id: str, request: TaskAssignmentRequest):
    """Manually assign a Pending task to a technician"""
    task = _load_task(task_id)

    if not technician_repo.exists(request.technician_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Technician {request.technician_id} not found"
        )

    try:
        updated = assign_task(task, request.technician_id)
    except TaskTransitionError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    logger.info(f"Task {task_id} manually assigned to {request.technician_id}")
    return _save(updated)


@router.post("/{task_id}/start", response_model=Dict)
async def start_task_work(task_id: str):
    """Technician starts work on an Assigned task"""
    task = _load_task(task_id)

    try:
        updated = start_task(task)
    except TaskTransitionError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    return _save(updated)


@router.post("/{task_id}/complete", response_model=Dict)
async def complete_task_work(task_id: str, completion: TaskCompletionRequest):
    """Complete an In Progress task with photos, parts, notes and signature"""
    task = _load_task(task_id)

    try:
        updated = complete_task(task, completion)
    except TaskTransitionError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    logger.info(
        f"Task {task_id} completed with {len(updated.parts_used)} parts and "
        f"{len(updated.before_photos) + len(updated.after_photos)} photos"
    )
    return _save(updated)
