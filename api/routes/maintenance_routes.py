"""
Maintenance Scheduling Routes.

Endpoints that run task generation (preview or persisted) and greedy
technician assignment over the stored fleet.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from models.maintenance_request import (
    AssignTasksResponse,
    GenerateTasksRequest,
    GenerateTasksResponse,
)
from services.maintenance_scheduler import MaintenanceScheduler

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/maintenance",
    tags=["maintenance"],
    responses={
        500: {"description": "Internal server error - persistence failure"}
    }
)


def get_scheduler() -> MaintenanceScheduler:
    """Fresh scheduler per request, so each run gets its own run_id and stats."""
    return MaintenanceScheduler()


@router.post(
    "/generate/preview",
    response_model=GenerateTasksResponse,
    summary="Preview task generation",
    description="""
    Compute the maintenance tasks a generation run would create without
    storing them.

    Normal mode schedules a task on each vehicle's next due date when it
    falls within the next 30 days and no task for that vehicle is already
    scheduled within 7 days of it.

    Force mode creates a task for every vehicle that has no Pending or
    Assigned task, using a random template and a random date within the
    next 14 days.
    """
)
async def preview_generation(
    request: GenerateTasksRequest,
    scheduler: MaintenanceScheduler = Depends(get_scheduler)
) -> GenerateTasksResponse:
    try:
        tasks = scheduler.preview_generation(request.force_generate)
    except Exception as e:
        logger.error(f"Generation preview failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to compute task generation preview"
        )

    return GenerateTasksResponse(
        run_id=scheduler.run_id,
        force_generate=request.force_generate,
        persisted=False,
        generated_count=len(tasks),
        tasks=tasks
    )


@router.post(
    "/generate",
    response_model=GenerateTasksResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Generate and store maintenance tasks"
)
async def generate_tasks(
    request: GenerateTasksRequest,
    scheduler: MaintenanceScheduler = Depends(get_scheduler)
) -> GenerateTasksResponse:
    """
    Generate new maintenance tasks and persist them as Pending.

    Two concurrent calls can both create a task for the same vehicle;
    callers must not run generation in parallel.
    """
    try:
        tasks = scheduler.generate_tasks(request.force_generate)
    except Exception as e:
        logger.error(f"Task generation failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate maintenance tasks"
        )

    return GenerateTasksResponse(
        run_id=scheduler.run_id,
        force_generate=request.force_generate,
        persisted=True,
        generated_count=len(tasks),
        tasks=tasks
    )


@router.post(
    "/assign",
    response_model=AssignTasksResponse,
    summary="Assign pending tasks to technicians"
)
async def assign_tasks(
    scheduler: MaintenanceScheduler = Depends(get_scheduler)
) -> AssignTasksResponse:
    """
    Assign every Pending task to the least loaded technician with spare
    capacity, preferring technicians stationed at the vehicle's depot.
    Most urgent and earliest scheduled tasks are assigned first.
    """
    try:
        result = scheduler.assign_pending_tasks()
    except Exception as e:
        logger.error(f"Task assignment failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to assign maintenance tasks"
        )

    return AssignTasksResponse(
        run_id=scheduler.run_id,
        pending_before=result["pending_before"],
        assigned_count=len(result["tasks"]),
        unassigned_count=result["unassigned_count"],
        assignments=result["assignments"],
        tasks=result["tasks"]
    )
