from app.schemas.common import CamelModel, MessageResponse, ErrorResponse
from app.schemas.event import (
    EventCreate, EventUpdate, EventResponse, EventListResponse, EventEnvelope, Pagination,
)
from app.schemas.inscription import InscriptionResponse, InscriptionEnvelope, InscriptionListEnvelope

__all__ = [
    "CamelModel", "MessageResponse", "ErrorResponse",
    "EventCreate", "EventUpdate", "EventResponse", "EventListResponse", "EventEnvelope", "Pagination",
    "InscriptionResponse", "InscriptionEnvelope", "InscriptionListEnvelope",
]
