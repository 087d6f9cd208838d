"""
Pydantic schemas for event-related request/response validation.
"""

from datetime import datetime
from typing import Optional
from pydantic import Field

from app.models.event import EventStatus, EventType
from app.schemas.common import CamelModel


class EventCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    date: datetime
    location: Optional[str] = Field(None, max_length=255)
    type: EventType = EventType.ENCUENTRO
    status: EventStatus = EventStatus.DRAFT
    registration_open: bool = True
    max_participants: Optional[int] = Field(None, gt=0, le=100000)


class EventUpdate(CamelModel):
    """Partial update; only the fields sent are applied."""

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    date: Optional[datetime] = None
    location: Optional[str] = Field(None, max_length=255)
    type: Optional[EventType] = None
    status: Optional[EventStatus] = None
    registration_open: Optional[bool] = None
    max_participants: Optional[int] = Field(None, gt=0, le=100000)


class EventResponse(CamelModel):
    id: int
    title: str
    description: Optional[str]
    date: datetime
    location: Optional[str]
    type: str
    status: str
    registration_open: bool
    max_participants: Optional[int]
    current_participants: int
    organizer_id: int
    created_at: datetime


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


class EventListResponse(CamelModel):
    success: bool = True
    data: list[EventResponse]
    pagination: Pagination
    cached: bool = False


class EventEnvelope(CamelModel):
    success: bool = True
    data: EventResponse
    message: Optional[str] = None
