"""Fleet Maintenance API settings, read from the environment or a .env file."""

from typing import List, Optional
from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings.

    Every field maps to an upper-case environment variable of the same name
    (``NEO4J_URI``, ``GENERATION_HORIZON_DAYS``, ...).
    """

    # Fleet graph database
    neo4j_uri: str = Field(
        default="bolt://localhost:7687",
        description="Neo4j connection URI"
    )
    neo4j_user: str = Field(
        default="neo4j",
        description="Neo4j username"
    )
    neo4j_password: str = Field(
        ...,
        description="Neo4j password (required)"
    )
    neo4j_database: Optional[str] = Field(
        default=None,
        description="Database name; the server default database when unset"
    )
    neo4j_max_pool_size: int = Field(
        default=50,
        ge=1,
        description="Maximum pooled driver connections"
    )
    neo4j_acquisition_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Seconds to wait for a pooled connection"
    )

    # Authentication
    api_key: Optional[str] = Field(
        default=None,
        description="Expected X-API-Key header value. Unset disables authentication (dev mode)"
    )
    cors_origins: List[str] = Field(
        default=["*"],
        description="Origins allowed to call the API from a browser"
    )

    # Task generation windows
    generation_horizon_days: int = Field(
        default=30,
        ge=1,
        description="Only vehicles due within this many days get a scheduled task"
    )
    duplicate_window_days: int = Field(
        default=7,
        ge=0,
        description="An existing task closer than this to the due date suppresses a new one"
    )
    forced_schedule_spread_days: int = Field(
        default=14,
        ge=1,
        description="Forced tasks are scheduled at a random offset below this many days"
    )

    # Application
    app_name: str = Field(
        default="Fleet Maintenance API",
        description="Application name shown in the OpenAPI docs"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )
    debug: bool = Field(
        default=False,
        description="FastAPI debug mode"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_file: str = Field(
        default="logs/api.log",
        description="Log file path; its directory is created at startup"
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

        json_schema_extra = {
            "example": {
                "neo4j_uri": "bolt://localhost:7687",
                "neo4j_user": "neo4j",
                "neo4j_password": "secure_password",
                "api_key": "your_api_key_here",
                "generation_horizon_days": 30,
                "duplicate_window_days": 7,
                "forced_schedule_spread_days": 14,
                "log_level": "INFO"
            }
        }


settings = Settings()
