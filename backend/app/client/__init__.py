"""
Python client for the inscriptions API with a local registration mirror.
"""

from app.client.api import AcaApiClient, ApiError
from app.client.state import Action, ActionType, EventState, EventStore, reduce

__all__ = ["AcaApiClient", "ApiError", "Action", "ActionType", "EventState", "EventStore", "reduce"]
