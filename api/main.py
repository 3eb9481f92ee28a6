import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, HTTPException, Depends, Request, Security, status
from fastapi.security import APIKeyHeader
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from neo4j.exceptions import ServiceUnavailable, SessionExpired

from config import settings
from database import db
from routes.vehicle_routes import router as vehicle_router
from routes.technician_routes import router as technician_router
from routes.task_routes import router as task_router
from routes.maintenance_routes import router as maintenance_router
from routes.dashboard_routes import router as dashboard_router

# Logging goes to both the log file and stderr
Path(settings.log_file).parent.mkdir(parents=True, exist_ok=True)
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(settings.log_file),
        logging.StreamHandler()
    ]
)
logger = logging.getLogger(__name__)

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


async def verify_api_key(api_key: Optional[str] = Security(api_key_header)):
    """Check the X-API-Key header against the configured key.

    Raises:
        HTTPException: 401 if the key is missing or wrong
    """
    if not settings.api_key:  # Dev mode: no key configured
        return True
    if not api_key or api_key != settings.api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API key"
        )
    return True


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Check the fleet graph on startup and release the driver on shutdown."""
    logger.info(f"Starting {settings.app_name} {settings.app_version}...")
    if not db.verify_connectivity():
        logger.warning("Cannot connect to Neo4j database, schema setup skipped")
    else:
        logger.info("Successfully connected to Neo4j database")
        db.ensure_schema()

    yield

    logger.info(f"Shutting down {settings.app_name}...")
    db.close()


tags_metadata = [
    {
        "name": "health",
        "description": "Liveness and database connectivity",
    },
    {
        "name": "vehicles",
        "description": "Fleet vehicles with their depot, mileage and service schedule; CSV import",
    },
    {
        "name": "technicians",
        "description": "Technicians, their depots, capacity and derived workload",
    },
    {
        "name": "tasks",
        "description": "Maintenance tasks - manual creation, assignment, start and completion with evidence",
    },
    {
        "name": "maintenance",
        "description": "Recurring task generation and greedy technician assignment",
    },
    {
        "name": "dashboard",
        "description": "Fleet-wide task metrics, workloads and upcoming work",
    },
]

app = FastAPI(
    title=settings.app_name,
    description="""
    ## Overview
    Fleet Maintenance API tracks the maintenance lifecycle of a vehicle fleet:
    recurring service tasks are generated from each vehicle's service interval,
    assigned to technicians by depot and workload, and completed with photos,
    parts and a digital signature.

    ## Features
    - **Task Generation**: Due-date driven, with duplicate suppression and a force mode
    - **Task Assignment**: Priority ordered, depot preferring, capacity respecting
    - **Completion Evidence**: Photos, parts used, notes and signature per task
    - **Graph Storage**: Neo4j-backed vehicles, technicians and tasks

    ## Authentication
    Send the `X-API-Key` header on every request except `/health` and `/`.
    """,
    version=settings.app_version,
    lifespan=lifespan,
    openapi_tags=tags_metadata,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    debug=settings.debug
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health",
         tags=["health"],
         summary="Health Check",
         description="API liveness plus Neo4j connectivity",
         response_description="Health status information")
async def health_check():
    db_status = "healthy" if db.verify_connectivity() else "unhealthy"
    return {
        "status": "healthy",
        "database": db_status,
        "version": settings.app_version
    }


@app.get("/",
         summary="API Information",
         description="Name, version and documentation link of the Fleet Maintenance API",
         response_description="API metadata")
async def root():
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "documentation": "/docs"
    }


# Every resource router requires the API key
for router in (vehicle_router, technician_router, task_router, maintenance_router, dashboard_router):
    app.include_router(
        router,
        dependencies=[Depends(verify_api_key)]
    )


@app.exception_handler(404)
async def not_found_handler(request, exc):
    """Keep route-provided details (unknown vehicle, task, technician)."""
    if hasattr(exc, 'detail'):
        return JSONResponse(
            status_code=404,
            content={"detail": exc.detail}
        )
    return JSONResponse(
        status_code=404,
        content={"error": "Resource not found", "path": str(request.url)}
    )


@app.exception_handler(ServiceUnavailable)
@app.exception_handler(SessionExpired)
async def database_unavailable_handler(request: Request, exc: Exception):
    """Neo4j outages surface as 503 instead of a generic 500."""
    logger.error(f"Neo4j unavailable during {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Fleet database unavailable"}
    )


@app.exception_handler(500)
async def internal_error_handler(request, exc):
    logger.error(f"Internal server error: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error"}
    )
