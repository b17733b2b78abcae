"""Health-related Pydantic schemas."""

from enum import Enum
from typing import Dict

from pydantic import BaseModel, Field

from ..core.timeutils import UtcDateTime


class HealthStatus(str, Enum):
    """Health status enumeration."""
    HEALTHY = "healthy"
    READY = "ready"
    DEGRADED = "degraded"


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: HealthStatus = Field(..., description="Service status")
    timestamp: UtcDateTime = Field(..., description="Current server time (ISO 8601)")
    version: str = Field("1.0.0", description="API version")


class ReadinessResponse(BaseModel):
    """Readiness check with per-dependency results."""

    status: HealthStatus = Field(..., description="ready or degraded")
    service: str = Field(..., description="Service name")
    checks: Dict[str, str] = Field(default_factory=dict, description="Dependency name to ok/error")
