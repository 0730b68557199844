"""
Standard response envelopes.
"""

from typing import Generic, List, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class DataResponse(BaseModel, Generic[T]):
    """Envelope used by the remote-procedure endpoints: ``{"data": ...}``."""

    data: T


class ListResponse(BaseModel, Generic[T]):
    """Standard list response for collection endpoints."""

    items: List[T] = Field(description="List of items")
    total: int = Field(description="Number of items returned")


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    environment: str
    database: str
