from app.models.user import User
from app.models.event import Event, EventStatus, EventType
from app.models.inscription import Inscription, InscriptionStatus

__all__ = ["User", "Event", "EventStatus", "EventType", "Inscription", "InscriptionStatus"]
