"""
Pydantic models for maintenance API requests and responses.
"""

import base64
from datetime import date
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from models.maintenance_task import MaintenanceTask, PartUsed, TaskPriority


class GenerateTasksRequest(BaseModel):
    """Request model for the task generation endpoints."""

    force_generate: bool = Field(
        False,
        description="Create a task for every vehicle regardless of due date, "
                    "skipping only vehicles that already have a Pending or Assigned task"
    )


class GenerateTasksResponse(BaseModel):
    """Result of a generation run."""

    run_id: str = Field(..., description="Identifier of this generation run")
    force_generate: bool = Field(..., description="Whether force mode was used")
    persisted: bool = Field(..., description="False for previews, True once stored")
    generated_count: int = Field(..., ge=0, description="Number of new tasks")
    tasks: List[MaintenanceTask] = Field(default_factory=list, description="The generated tasks")


class AssignTasksResponse(BaseModel):
    """Result of an assignment run."""

    run_id: str = Field(..., description="Identifier of this assignment run")
    pending_before: int = Field(..., ge=0, description="Pending tasks at the start of the run")
    assigned_count: int = Field(..., ge=0, description="Tasks assigned during this run")
    unassigned_count: int = Field(..., ge=0, description="Pending tasks left without a technician")
    assignments: Dict[str, str] = Field(
        default_factory=dict,
        description="Mapping of task_id to the technician_id it was assigned to"
    )
    tasks: List[MaintenanceTask] = Field(default_factory=list, description="Tasks whose assignment changed")


class ManualTaskCreate(BaseModel):
    """Manually scheduled task. Manual tasks always start Pending."""

    vehicle_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    description: str = ""
    priority: TaskPriority = TaskPriority.MEDIUM
    scheduled_date: date
    estimated_duration: float = Field(..., gt=0)
    notes: Optional[str] = None


class TaskAssignmentRequest(BaseModel):
    """Manual assignment of a Pending task."""

    technician_id: str = Field(..., min_length=1)


class TaskCompletionRequest(BaseModel):
    """
    Completion form submitted by the technician.

    The digital signature is mandatory; photos are opaque references
    (URLs or storage keys) produced by the upload collaborator.
    """

    digital_signature: str = Field(..., description="Technician signature")
    before_photos: List[str] = Field(default_factory=list)
    after_photos: List[str] = Field(default_factory=list)
    parts_used: List[PartUsed] = Field(default_factory=list)
    notes: Optional[str] = None

    @field_validator('digital_signature')
    @classmethod
    def validate_signature(cls, v: str) -> str:
        """Reject blank signatures."""
        if not v or not v.strip():
            raise ValueError("digital_signature must not be blank")
        return v.strip()


class VehicleImportRequest(BaseModel):
    """Request model for bulk vehicle import from base64-encoded CSV."""

    csv_content: str = Field(..., description="Base64-encoded CSV content")
    skip_invalid: bool = Field(
        True,
        description="Skip invalid rows instead of failing the entire import"
    )

    @field_validator('csv_content')
    @classmethod
    def validate_base64(cls, v: str) -> str:
        """Validate that csv_content is valid base64."""
        try:
            base64.b64decode(v, validate=True)
            return v
        except Exception:
            raise ValueError("csv_content must be valid base64-encoded string")

    def get_csv_content(self) -> str:
        """Decode and return the CSV content."""
        return base64.b64decode(self.csv_content).decode('utf-8-sig')


class VehicleImportResponse(BaseModel):
    """Summary of a vehicle import."""

    total_records: int = 0
    vehicles_created: int = 0
    vehicles_skipped: int = 0
    validation_errors: int = 0
    errors: List[Dict] = Field(default_factory=list)
