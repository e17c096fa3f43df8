"""
SLA Application DTOs
=====================

Data Transfer Objects for the SLA catalog API.

These Pydantic models handle serialization/deserialization and validation
for API requests and responses. Following YAGNI - only what's needed.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from helpdesk.config import MAX_SLA_HOURS


# ========== Request DTOs ==========

class SLATierCreateDTO(BaseModel):
    """Request model for creating an SLA tier."""
    name: str = Field(..., min_length=1, max_length=100, description="Tier name")
    response_time_hours: float = Field(
        ..., ge=0, le=MAX_SLA_HOURS, allow_inf_nan=False, description="Response budget in hours"
    )
    resolution_time_hours: float = Field(
        ..., ge=0, le=MAX_SLA_HOURS, allow_inf_nan=False, description="Resolution budget in hours"
    )

    @model_validator(mode="after")
    def validate_budgets(self) -> "SLATierCreateDTO":
        """Resolution budget may not undercut the response budget."""
        if self.resolution_time_hours < self.response_time_hours:
            raise ValueError("resolution_time_hours must be >= response_time_hours")
        return self


class SLATierUpdateDTO(BaseModel):
    """Request model for editing an SLA tier. Omitted fields keep their value."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    response_time_hours: Optional[float] = Field(None, ge=0, le=MAX_SLA_HOURS, allow_inf_nan=False)
    resolution_time_hours: Optional[float] = Field(None, ge=0, le=MAX_SLA_HOURS, allow_inf_nan=False)


# ========== Response DTOs ==========

class SLATierResponse(BaseModel):
    """Response model for an SLA tier."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    response_time_hours: float
    resolution_time_hours: float
