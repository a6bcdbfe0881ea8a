"""Pydantic schemas for the health-check endpoints."""

from pydantic import BaseModel


class PingResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    status: str
    message: str
