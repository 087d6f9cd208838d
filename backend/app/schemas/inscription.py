"""
Pydantic schemas for inscription responses.
"""

from datetime import datetime
from typing import Optional

from app.schemas.common import CamelModel
from app.schemas.event import EventResponse


class InscriptionResponse(CamelModel):
    id: str
    user_id: int
    event_id: int
    status: str
    notes: Optional[str] = None
    created_at: datetime
    # Only filled by the "my inscriptions" listing
    evento: Optional[EventResponse] = None


class InscriptionEnvelope(CamelModel):
    success: bool = True
    data: InscriptionResponse
    message: Optional[str] = None


class InscriptionListEnvelope(CamelModel):
    success: bool = True
    data: list[InscriptionResponse]
