"""Pydantic schemas for health check responses."""

from typing import Literal

from pydantic import Field

from cashflowops.schemas.account import CamelModel


class HealthResponse(CamelModel):
    """Response body for the health check endpoint."""

    status: Literal["ok"] = Field(default="ok", description="Service status")
    environment: str = Field(description="Current app environment (e.g. dev, prod)")
    database: Literal["connected", "disconnected"] | None = Field(
        default=None,
        description="Database connectivity status when check is performed",
    )
    realtime_clients: int = Field(
        default=0,
        ge=0,
        description="WebSocket sessions currently subscribed to alert events",
    )
