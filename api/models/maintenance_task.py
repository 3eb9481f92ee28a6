from datetime import date, datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class TaskPriority(str, Enum):
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @property
    def rank(self) -> int:
        """Sort rank, 0 is the most urgent."""
        return PRIORITY_RANK[self]


PRIORITY_RANK = {
    TaskPriority.CRITICAL: 0,
    TaskPriority.HIGH: 1,
    TaskPriority.MEDIUM: 2,
    TaskPriority.LOW: 3,
}


class TaskStatus(str, Enum):
    PENDING = "Pending"
    ASSIGNED = "Assigned"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    # Presentation state only, never written by generation or assignment
    OVERDUE = "Overdue"


# Statuses that count against a technician's capacity
ACTIVE_STATUSES = (TaskStatus.ASSIGNED, TaskStatus.IN_PROGRESS)


class PartUsed(BaseModel):
    """Part consumed while carrying out a task."""

    part_name: str = Field(..., min_length=1, description="Part name", examples=["Oil Filter"])
    quantity: int = Field(1, ge=1, description="Number of units used")
    cost: Optional[float] = Field(None, ge=0, description="Total cost for the units used")


class MaintenanceTask(BaseModel):
    """Maintenance task entity.

    Created Pending by the task generator or manually, assigned to a
    technician by the assigner, then started and completed by the technician.
    Completion stores the evidence: photos, parts and a digital signature.
    """

    # Primary Identifier
    task_id: str = Field(..., description="Unique task identifier", examples=["TASK-1735689600000-A1B2"])

    # Associations
    vehicle_id: str = Field(..., description="Vehicle the task services")
    technician_id: Optional[str] = Field(None, description="Assigned technician, absent until assigned")

    # Work Description
    title: str = Field(..., description="Short task title")
    description: str = Field("", description="Work to be carried out")
    priority: TaskPriority = Field(TaskPriority.MEDIUM, description="Task priority")
    status: TaskStatus = Field(TaskStatus.PENDING, description="Lifecycle status")

    # Scheduling
    scheduled_date: date = Field(..., description="Date the work is scheduled for")
    completed_date: Optional[date] = Field(None, description="Date the work was completed")
    estimated_duration: float = Field(..., gt=0, description="Estimated duration in hours")

    # Completion Evidence
    before_photos: List[str] = Field(default_factory=list, description="Photo references taken before the work")
    after_photos: List[str] = Field(default_factory=list, description="Photo references taken after the work")
    parts_used: List[PartUsed] = Field(default_factory=list, description="Parts consumed")
    digital_signature: Optional[str] = Field(None, description="Technician signature captured at completion")
    notes: Optional[str] = Field(None, description="Free-form technician notes")

    # Metadata
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Timestamp when this record was created"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "task_id": "TASK-1735689600000-A1B2",
                "vehicle_id": "TRK-001",
                "technician_id": "TECH-001",
                "title": "Monthly Service & Maintenance",
                "description": "Full service including oil change, filter replacement, and system diagnostics",
                "priority": "Medium",
                "status": "Assigned",
                "scheduled_date": "2025-01-15",
                "estimated_duration": 4,
                "before_photos": [],
                "after_photos": [],
                "parts_used": []
            }
        }

    @property
    def is_active(self) -> bool:
        """Whether the task counts against its technician's capacity."""
        return self.status in ACTIVE_STATUSES

    def is_overdue(self, today: date) -> bool:
        """Check if the task is past its scheduled date and not completed.

        Args:
            today: The reference date

        Returns:
            True if the task is overdue on the given date
        """
        return self.status != TaskStatus.COMPLETED and self.scheduled_date < today

    def display_status(self, today: date) -> TaskStatus:
        """Status to present to users, with Overdue layered over the stored one."""
        if self.is_overdue(today):
            return TaskStatus.OVERDUE
        return self.status
