"""
Configuration Module
====================

Application settings and configuration management using Pydantic.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="helpdesk", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== Server ==========
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port", ge=1, le=65535)

    # ========== Database ==========
    database_url: str = Field(
        default="sqlite+aiosqlite:///./helpdesk.db",
        description="Database connection URL (async driver)"
    )
    db_pool_size: int = Field(default=5, description="Database connection pool size", ge=1)
    db_max_overflow: int = Field(default=10, description="Max overflow connections", ge=0)
    db_pool_timeout_seconds: float = Field(
        default=10.0,
        description="Seconds to wait for a pooled connection",
        gt=0
    )
    db_operation_timeout_seconds: float = Field(
        default=15.0,
        description="Upper bound for a single storage call",
        gt=0
    )

    # ========== SLA Catalog ==========
    sla_catalog_path: Path = Field(
        default=Path("sla_catalog.yaml"),
        description="YAML file seeding the SLA tier catalog on first start"
    )

    # ========== Escalation ==========
    escalation_policy: str = Field(
        default="clear",
        description="Reassignment policy for breaching tickets (clear | handler)"
    )
    escalation_handler_id: Optional[int] = Field(
        default=None,
        description="User id receiving escalated tickets"
    )
    system_user_id: int = Field(
        default=0,
        description="User id recorded as author of escalation audit comments"
    )
    escalation_interval_seconds: int = Field(
        default=300,
        description="Seconds between escalation scans (0 disables the scheduler)",
        ge=0
    )

    # ========== Attachments ==========
    attachments_dir: Path = Field(
        default=Path("uploads"),
        description="Root directory of the local attachment blob store"
    )

    # ========== CORS ==========
    cors_origins: List[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "test", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("escalation_policy")
    @classmethod
    def validate_escalation_policy(cls, v: str) -> str:
        """Ensure the escalation policy is a known strategy."""
        allowed = {p.value for p in EscalationPolicyName}
        if v not in allowed:
            raise ValueError(f"escalation_policy must be one of {allowed}")
        return v


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# ========== Constants ==========

class Priority(str, Enum):
    """Ticket priority levels."""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class TicketStatus(str, Enum):
    """Ticket lifecycle statuses."""
    OPEN = "Open"
    IN_PROGRESS = "InProgress"
    RESOLVED = "Resolved"
    CLOSED = "Closed"


class Role(str, Enum):
    """Roles supplied by the identity provider."""
    ADMIN = "admin"
    AGENT = "agent"
    USER = "user"


class EscalationPolicyName(str, Enum):
    """Reassignment strategies for breaching tickets."""
    CLEAR = "clear"
    HANDLER = "handler"


# Global settings instance
settings = get_settings()


# ========== Lists for validation ==========

VALID_PRIORITIES = [p.value for p in Priority]
VALID_STATUSES = [s.value for s in TicketStatus]
VALID_ROLES = [r.value for r in Role]

# Statuses that stop the SLA clock
TERMINAL_STATUSES = (TicketStatus.RESOLVED, TicketStatus.CLOSED)

# Upper bound on an SLA budget, in hours (one year)
MAX_SLA_HOURS = 24 * 365
