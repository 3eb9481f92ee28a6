from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from models.maintenance_task import MaintenanceTask


class DashboardMetrics(BaseModel):
    """Fleet-wide task counters."""

    total_tasks: int = 0
    overdue_tasks: int = 0
    completed_tasks: int = 0
    pending_tasks: int = 0
    in_progress_tasks: int = 0
    average_completion_days: Optional[float] = Field(
        None,
        description="Mean days from creation to completion, None when nothing is completed"
    )


class TechnicianWorkload(BaseModel):
    technician_id: str
    name: str
    current_tasks: int
    max_tasks: int
    workload_percentage: float


class DashboardSummary(BaseModel):
    metrics: DashboardMetrics
    technician_workloads: List[TechnicianWorkload] = Field(default_factory=list)
    upcoming_tasks: List[MaintenanceTask] = Field(default_factory=list)
    recent_completions: List[MaintenanceTask] = Field(default_factory=list)
    vehicles_by_location: Dict[str, int] = Field(default_factory=dict)
