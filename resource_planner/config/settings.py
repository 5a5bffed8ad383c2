import os
from pathlib import Path

from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_database_url() -> str:
    """Get database URL, using absolute path for SQLite to avoid path resolution issues.

    SQLite is meant for local development only. Set DATABASE_URL to a
    PostgreSQL connection string for shared deployments.
    """
    db_url = os.getenv("DATABASE_URL", "")
    if db_url:
        logger.info(f"Using DATABASE_URL from environment: {db_url}")
        return db_url

    db_path = Path(__file__).parent.parent.parent / "planner.db"
    abs_path = db_path.resolve()
    db_url = f"sqlite:///{abs_path}"
    logger.warning(f"Using SQLite database (LOCAL DEV ONLY): {db_url}")
    return db_url


class Settings(BaseSettings):
    database_url: str = Field(
        default_factory=get_database_url,
        validation_alias="DATABASE_URL",
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: str | None = Field(default=None, validation_alias="LOG_FILE")
    log_json: bool = Field(default=False, validation_alias="LOG_JSON")
    vacation_category_id: int = Field(
        default=4,
        validation_alias="VACATION_CATEGORY_ID",
        description="Project category that marks an area's vacation client",
    )
    fallback_client_id: int = Field(
        default=10,
        validation_alias="FALLBACK_CLIENT_ID",
        description="Client used when an area has no vacation client",
    )
    seed_hours: float = Field(
        default=8.0,
        validation_alias="SEED_HOURS",
        description="Hours placed on Monday for each collaborator of a new planning week",
    )
    over_allocation_threshold: float = Field(
        default=40.0,
        validation_alias="OVER_ALLOCATION_THRESHOLD",
        description="Totals strictly above this value are over-allocated",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate that log level is one of the standard logging levels."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in valid_levels:
            logger.warning(f"Invalid LOG_LEVEL '{value}'. Valid levels are: {', '.join(valid_levels)}. Defaulting to INFO.")
            return "INFO"
        return upper_value

    @field_validator("seed_hours")
    @classmethod
    def validate_seed_hours(cls, value: float) -> float:
        """Seed hours must be a storable allocation value."""
        if value < 0 or value > 168:
            raise ValueError(f"SEED_HOURS must be between 0 and 168, got {value}")
        return value

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )


settings = Settings()
