from fastapi import APIRouter, Depends

from models.dashboard import DashboardSummary
from services.dashboard_service import build_dashboard
from services.maintenance_scheduler import MaintenanceScheduler
from routes.maintenance_routes import get_scheduler


router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/", response_model=DashboardSummary)
async def get_dashboard(scheduler: MaintenanceScheduler = Depends(get_scheduler)):
    """Fleet metrics, technician workloads, upcoming tasks and recent completions"""
    snapshot = scheduler.load_snapshot()
    return build_dashboard(
        snapshot.tasks,
        snapshot.technicians,
        snapshot.vehicles,
        scheduler.clock()
    )
