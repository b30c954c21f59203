"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Liveness payload."""

    status: str = Field(..., description="Service status, 'ok' when healthy.")


class ErrorResponse(BaseModel):
    """Error payload returned for failed resource reads."""

    detail: str
