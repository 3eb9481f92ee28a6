from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class VehicleType(str, Enum):
    TRUCK = "Truck"
    VAN = "Van"
    CAR = "Car"
    MOTORCYCLE = "Motorcycle"


class LocationBase(str, Enum):
    """Depots where vehicles are based and technicians are stationed."""
    DEPOT_A = "Depot A"
    DEPOT_B = "Depot B"
    FIELD_OFFICE = "Field Office"


class ServiceInterval(str, Enum):
    WEEKLY = "Weekly"
    BI_WEEKLY = "Bi-weekly"
    MONTHLY = "Monthly"


class VehicleStatus(str, Enum):
    ACTIVE = "Active"
    IN_SERVICE = "In Service"
    OUT_OF_SERVICE = "Out of Service"


class Vehicle(BaseModel):
    """Fleet vehicle with its maintenance schedule.

    The service interval and last service date drive recurring task
    generation; the location base drives technician depot affinity.
    """

    # Primary Identifier
    vehicle_id: str = Field(..., min_length=1, description="Unique vehicle identifier", examples=["TRK-001"])

    # Classification
    type: VehicleType = Field(..., description="Vehicle category")
    location_base: LocationBase = Field(..., description="Depot the vehicle is based at")

    # Usage
    mileage: int = Field(..., ge=0, description="Odometer reading", examples=[45680])

    # Schedule
    last_service_date: date = Field(..., description="Date of the last completed service")
    service_interval: ServiceInterval = Field(..., description="Maintenance cadence")

    # Status
    status: VehicleStatus = Field(VehicleStatus.ACTIVE, description="Operational status")

    # Metadata
    created_at: Optional[datetime] = Field(None, description="Timestamp when this record was created")
    updated_at: Optional[datetime] = Field(None, description="Timestamp when this record was last updated")

    class Config:
        json_schema_extra = {
            "example": {
                "vehicle_id": "TRK-001",
                "type": "Truck",
                "location_base": "Depot A",
                "mileage": 45680,
                "last_service_date": "2024-12-15",
                "service_interval": "Monthly",
                "status": "Active"
            }
        }
