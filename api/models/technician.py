from typing import List

from pydantic import BaseModel, Field

from models.vehicle import LocationBase


class Technician(BaseModel):
    """Maintenance technician stationed at one or more depots.

    ``active_task_count`` is never written by clients. It is derived from the
    tasks currently Assigned to or In Progress with the technician each time
    the record is read.
    """

    technician_id: str = Field(..., min_length=1, description="Unique technician identifier", examples=["TECH-001"])
    name: str = Field(..., min_length=1, description="Full name", examples=["Mike Johnson"])
    assigned_depots: List[LocationBase] = Field(
        ...,
        min_length=1,
        description="Depots this technician covers"
    )
    max_tasks: int = Field(3, ge=1, description="Maximum number of concurrent tasks")

    # Contact
    email: str = Field("", description="Contact email")
    phone: str = Field("", description="Contact phone number")

    # Derived
    active_task_count: int = Field(0, ge=0, description="Tasks currently Assigned or In Progress (derived)")

    class Config:
        json_schema_extra = {
            "example": {
                "technician_id": "TECH-001",
                "name": "Mike Johnson",
                "assigned_depots": ["Depot A", "Field Office"],
                "max_tasks": 3,
                "email": "mike.johnson@fleet.example",
                "phone": "+1-555-0101"
            }
        }
