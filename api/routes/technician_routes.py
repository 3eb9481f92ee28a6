from typing import Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel, Field

from models.technician import Technician
from models.vehicle import LocationBase
from repositories.maintenance_task_repository import MaintenanceTaskRepository
from repositories.technician_repository import TechnicianRepository


router = APIRouter(prefix="/technicians", tags=["technicians"])
repo = TechnicianRepository()
task_repo = MaintenanceTaskRepository()


class TechnicianUpdate(BaseModel):
    """Model for partial technician updates"""
    name: Optional[str] = None
    assigned_depots: Optional[List[LocationBase]] = Field(None, min_length=1)
    max_tasks: Optional[int] = Field(None, ge=1)
    email: Optional[str] = None
    phone: Optional[str] = None


@router.post("/", response_model=Dict, status_code=status.HTTP_201_CREATED)
async def create_technician(technician: Technician):
    """Create a new technician"""
    if repo.exists(technician.technician_id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Technician {technician.technician_id} already exists"
        )

    result = repo.create(technician)
    if not result:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create technician"
        )

    return result


@router.get("/", response_model=List[Dict])
async def get_technicians(
    depot: Optional[LocationBase] = Query(None, description="Only technicians covering this depot")
):
    """Get all technicians with their current workload"""
    return repo.get_all(depot=depot.value if depot else None)


@router.get("/{technician_id}", response_model=Dict)
async def get_technician(technician_id: str):
    """Get a technician by identifier"""
    technician = repo.get_by_id(technician_id)
    if not technician:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Technician {technician_id} not found"
        )
    return technician


@router.get("/{technician_id}/tasks", response_model=List[Dict])
async def get_technician_tasks(technician_id: str):
    """Get every task assigned to a technician"""
    if not repo.exists(technician_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Technician {technician_id} not found"
        )
    return task_repo.get_by_technician(technician_id)


@router.patch("/{technician_id}", response_model=Dict)
async def update_technician(technician_id: str, updates: TechnicianUpdate):
    """Update a technician's properties"""
    if not repo.exists(technician_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Technician {technician_id} not found"
        )

    update_data = {k: v for k, v in updates.model_dump().items() if v is not None}

    if not update_data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No valid updates provided"
        )

    result = repo.update(technician_id, update_data)
    if not result:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update technician"
        )

    return result


@router.delete("/{technician_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_technician(technician_id: str):
    """Delete a technician"""
    success = repo.delete(technician_id)
    if not success:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Technician {technician_id} not found"
        )
    return None
