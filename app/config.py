"""Runtime configuration."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    Attributes
    ----------
    app_name : str
        Human-readable application name.
    database_url : str
        SQLAlchemy database URL.
    default_page_size : int
        Page size used when a caller omits or sends a non-positive value.
    max_page_size : int
        Upper bound applied to requested page sizes.
    audit_retention_days : int
        Default retention window for the purge job.
    audit_failures_fatal : bool
        Whether a failed audit write is raised to the business caller.
    bootstrap_enabled : bool
        Whether one-time unauthenticated bootstrap is allowed.
    log_level : str
        Root logging level.
    log_json : bool
        Whether log lines are emitted as JSON objects.
    """

    model_config = SettingsConfigDict(env_prefix="ERP_AUDIT_", extra="ignore")

    app_name: str = "ERP Audit"
    database_url: str = "sqlite+aiosqlite:///./erp_audit.db"
    default_page_size: int = Field(default=10, ge=1)
    max_page_size: int = Field(default=100, ge=1)
    audit_retention_days: int = Field(default=90, ge=1)
    audit_failures_fatal: bool = True
    bootstrap_enabled: bool = True
    log_level: str = "INFO"
    log_json: bool = True


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings.

    Returns
    -------
    Settings
        Cached settings instance.
    """
    return Settings()
