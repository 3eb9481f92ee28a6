import logging
from datetime import date
from typing import Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel, Field, ValidationError

from models.maintenance_request import VehicleImportRequest, VehicleImportResponse
from models.vehicle import LocationBase, ServiceInterval, Vehicle, VehicleStatus, VehicleType
from repositories.vehicle_repository import VehicleRepository
from utils.csv_parser import parse_vehicles_csv, validate_vehicle_data

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/vehicles", tags=["vehicles"])
repo = VehicleRepository()


class VehicleUpdate(BaseModel):
    """Model for partial vehicle updates"""
    type: Optional[VehicleType] = None
    location_base: Optional[LocationBase] = None
    mileage: Optional[int] = Field(None, ge=0)
    last_service_date: Optional[date] = None
    service_interval: Optional[ServiceInterval] = None
    status: Optional[VehicleStatus] = None


@router.post("/", response_model=Dict, status_code=status.HTTP_201_CREATED)
async def create_vehicle(vehicle: Vehicle):
    """Create a new vehicle"""
    if repo.exists(vehicle.vehicle_id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Vehicle {vehicle.vehicle_id} already exists"
        )

    result = repo.create(vehicle)
    if not result:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create vehicle"
        )

    return result


@router.get("/{vehicle_id}", response_model=Dict)
async def get_vehicle(vehicle_id: str):
    """Get a vehicle by identifier"""
    vehicle = repo.get_by_id(vehicle_id)
    if not vehicle:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Vehicle {vehicle_id} not found"
        )
    return vehicle


@router.get("/", response_model=List[Dict])
async def get_vehicles(
    skip: int = Query(0, ge=0, description="Number of items to skip"),
    limit: int = Query(100, ge=1, le=1000, description="Number of items to return"),
    location_base: Optional[LocationBase] = Query(None, description="Filter by depot"),
    service_interval: Optional[ServiceInterval] = Query(None, description="Filter by service interval"),
    vehicle_status: Optional[VehicleStatus] = Query(None, alias="status", description="Filter by status"),
    vehicle_type: Optional[VehicleType] = Query(None, alias="type", description="Filter by vehicle type")
):
    """Get all vehicles with pagination and filters"""
    filters = {
        'location_base': location_base,
        'service_interval': service_interval,
        'status': vehicle_status,
        'type': vehicle_type,
    }
    return repo.get_all(skip=skip, limit=limit, filters=filters)


@router.patch("/{vehicle_id}", response_model=Dict)
async def update_vehicle(vehicle_id: str, updates: VehicleUpdate):
    """Update a vehicle's properties"""
    if not repo.exists(vehicle_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Vehicle {vehicle_id} not found"
        )

    update_data = {k: v for k, v in updates.model_dump().items() if v is not None}

    if not update_data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No valid updates provided"
        )

    result = repo.update(vehicle_id, update_data)
    if not result:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update vehicle"
        )

    return result


@router.delete("/{vehicle_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_vehicle(vehicle_id: str):
    """Delete a vehicle"""
    success = repo.delete(vehicle_id)
    if not success:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Vehicle {vehicle_id} not found"
        )
    return None


@router.post("/bulk", response_model=Dict, status_code=status.HTTP_201_CREATED)
async def bulk_create_vehicles(vehicles: List[Vehicle]):
    """Bulk create multiple vehicles"""
    if not vehicles:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No vehicles provided"
        )

    if len(vehicles) > 1000:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Maximum 1000 vehicles per bulk request"
        )

    # Check for duplicates in request
    vehicle_ids = [v.vehicle_id for v in vehicles]
    if len(vehicle_ids) != len(set(vehicle_ids)):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Duplicate vehicle identifiers in request"
        )

    existing = [vehicle_id for vehicle_id in vehicle_ids if repo.exists(vehicle_id)]
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Vehicles with these identifiers already exist: {existing}"
        )

    return repo.bulk_create(vehicles)


@router.post("/import", response_model=VehicleImportResponse)
async def import_vehicles(request: VehicleImportRequest) -> VehicleImportResponse:
    """
    Import vehicles from a base64-encoded CSV export.

    Rows failing validation are reported and skipped (or fail the whole
    import when ``skip_invalid`` is false). Vehicles that already exist are
    skipped.
    """
    try:
        rows = parse_vehicles_csv(request.get_csv_content())
    except (ValueError, UnicodeDecodeError) as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid CSV content: {e}"
        )

    summary = VehicleImportResponse(total_records=len(rows))
    to_create: List[Vehicle] = []

    for row in rows:
        is_valid, errors = validate_vehicle_data(row)
        if is_valid:
            try:
                vehicle = Vehicle(**{k: v for k, v in row.items() if k != 'row_number'})
            except ValidationError as e:
                is_valid, errors = False, [err['msg'] for err in e.errors()]

        if not is_valid:
            summary.validation_errors += 1
            summary.errors.append({"row_number": row['row_number'], "errors": errors})
            if not request.skip_invalid:
                raise HTTPException(
                    status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                    detail=f"Row {row['row_number']}: {'; '.join(errors)}"
                )
            continue

        if repo.exists(vehicle.vehicle_id) or any(v.vehicle_id == vehicle.vehicle_id for v in to_create):
            summary.vehicles_skipped += 1
            continue

        to_create.append(vehicle)

    if to_create:
        result = repo.bulk_create(to_create)
        summary.vehicles_created = result.get("created", 0)

    logger.info(
        f"Vehicle import: {summary.vehicles_created} created, {summary.vehicles_skipped} skipped, "
        f"{summary.validation_errors} invalid of {summary.total_records} rows"
    )
    return summary
