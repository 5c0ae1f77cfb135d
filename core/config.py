"""
Core Module - Configuration.

============================================================
RESPONSIBILITY
============================================================
Single configuration object for the registry service.

- Loaded from environment variables (and a local .env file)
- Validated once at startup
- Passed explicitly to services that need it

============================================================
ENVIRONMENT
============================================================
REGISTRY_DATABASE_URL                 SQLAlchemy URL
REGISTRY_ECHO_SQL                     Log SQL statements
REGISTRY_POOL_SIZE / MAX_OVERFLOW /
REGISTRY_POOL_TIMEOUT / POOL_RECYCLE  Pool sizing (non-SQLite)
REGISTRY_ALLOW_UNREGISTERED_JOB_REFS  Jobs may reference unknown specs
REGISTRY_STRICT_STATUS_TRANSITIONS    Reject moves out of terminal status
REGISTRY_STORAGE_TYPES                Comma separated storage types
LOG_LEVEL, API_HOST, API_PORT, ENVIRONMENT

============================================================
"""

import os
from dataclasses import dataclass, field
from typing import List, Tuple

from dotenv import load_dotenv


DEFAULT_DATABASE_URL = "sqlite:///feature_registry.db"

DEFAULT_STORAGE_TYPES: Tuple[str, ...] = (
    "REDIS",
    "BIGTABLE",
    "BIGQUERY",
    "POSTGRES",
    "CASSANDRA",
    "FILE",
)


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass
class RegistryConfig:
    """Configuration for the feature registry service."""

    # Database
    database_url: str = DEFAULT_DATABASE_URL
    """SQLAlchemy database URL."""

    echo_sql: bool = False
    """Log every SQL statement."""

    pool_size: int = 10
    """Connections kept in the pool (ignored for SQLite)."""

    max_overflow: int = 20
    """Connections allowed beyond pool_size."""

    pool_timeout: int = 30
    """Seconds to wait for a free connection."""

    pool_recycle: int = 1800
    """Recycle connections after N seconds."""

    # Registry policy
    allow_unregistered_job_refs: bool = True
    """Jobs may reference entities/features that were never registered."""

    strict_status_transitions: bool = False
    """Reject status changes once a job reached a terminal status."""

    storage_types: Tuple[str, ...] = field(default=DEFAULT_STORAGE_TYPES)
    """Storage types accepted by the storage validator."""

    # Runtime
    log_level: str = "INFO"
    """Logging level."""

    api_host: str = "0.0.0.0"
    """HTTP bind address."""

    api_port: int = 8000
    """HTTP port."""

    environment: str = "production"
    """Deployment environment name."""

    @classmethod
    def from_env(cls) -> "RegistryConfig":
        """Load configuration from environment variables."""
        load_dotenv()

        storage_types = os.getenv("REGISTRY_STORAGE_TYPES")
        if storage_types:
            parsed_types = tuple(
                t.strip().upper() for t in storage_types.split(",") if t.strip()
            )
        else:
            parsed_types = DEFAULT_STORAGE_TYPES

        return cls(
            database_url=os.getenv("REGISTRY_DATABASE_URL", DEFAULT_DATABASE_URL),
            echo_sql=_env_flag("REGISTRY_ECHO_SQL", "false"),
            pool_size=int(os.getenv("REGISTRY_POOL_SIZE", "10")),
            max_overflow=int(os.getenv("REGISTRY_MAX_OVERFLOW", "20")),
            pool_timeout=int(os.getenv("REGISTRY_POOL_TIMEOUT", "30")),
            pool_recycle=int(os.getenv("REGISTRY_POOL_RECYCLE", "1800")),
            allow_unregistered_job_refs=_env_flag(
                "REGISTRY_ALLOW_UNREGISTERED_JOB_REFS", "true"
            ),
            strict_status_transitions=_env_flag(
                "REGISTRY_STRICT_STATUS_TRANSITIONS", "false"
            ),
            storage_types=parsed_types,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            api_host=os.getenv("API_HOST", "0.0.0.0"),
            api_port=int(os.getenv("API_PORT", os.getenv("PORT", "8000"))),
            environment=os.getenv("ENVIRONMENT", "production"),
        )

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    def validate(self) -> List[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if not self.database_url:
            errors.append("database_url must be set")

        if self.pool_size < 1:
            errors.append("pool_size must be at least 1")

        if self.pool_timeout < 1:
            errors.append("pool_timeout must be at least 1")

        if not self.storage_types:
            errors.append("storage_types must not be empty")

        if not 0 < self.api_port < 65536:
            errors.append("api_port must be between 1 and 65535")

        return errors


__all__ = [
    "RegistryConfig",
    "DEFAULT_DATABASE_URL",
    "DEFAULT_STORAGE_TYPES",
]
