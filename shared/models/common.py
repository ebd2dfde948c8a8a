"""Health and readiness payloads shared by the FleetOS services."""

from enum import Enum
from typing import Dict

from pydantic import BaseModel, ConfigDict, Field


class ComponentStatus(str, Enum):
    """State of one component in a readiness report."""

    HEALTHY = "healthy"
    UNAVAILABLE = "unavailable"
    STOPPED = "stopped"


class ServiceInfo(BaseModel):
    """Liveness payload: identity of the running service."""

    status: str = Field(default="healthy", description="Always healthy while the process answers")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="Service version")
    environment: str = Field("development", description="Deployment environment")
    uptime_seconds: float = Field(..., ge=0, description="Seconds since startup")


class ReadinessReport(BaseModel):
    """Readiness payload with the state of each component."""

    service: str
    version: str
    checks: Dict[str, ComponentStatus] = Field(default_factory=dict)

    model_config = ConfigDict(use_enum_values=True)

    @property
    def ready(self) -> bool:
        return all(value == ComponentStatus.HEALTHY for value in self.checks.values())

    @property
    def status(self) -> str:
        return "ready" if self.ready else "not_ready"

    def to_response(self) -> dict:
        return {"status": self.status, **self.model_dump(mode="json")}
