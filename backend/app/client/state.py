"""
Client-held mirror of event and registration state.

The mirror is a best-effort cache of server truth: a pure reducer applies
actions to an immutable EventState, and EventStore dispatches them only
after the corresponding API call succeeded. A failed call records the error
and leaves every collection untouched. Re-fetching always reconciles.
"""

import enum
from dataclasses import dataclass, field, replace
from typing import Any, Optional

from app.client.api import AcaApiClient, ApiError


class ActionType(str, enum.Enum):
    SET_LOADING = "SET_LOADING"
    SET_ERROR = "SET_ERROR"
    SET_EVENTS = "SET_EVENTS"
    SET_CURRENT_EVENT = "SET_CURRENT_EVENT"
    SET_MY_INSCRIPTIONS = "SET_MY_INSCRIPTIONS"
    ADD_INSCRIPTION = "ADD_INSCRIPTION"
    REMOVE_INSCRIPTION = "REMOVE_INSCRIPTION"


@dataclass(frozen=True)
class Action:
    type: ActionType
    payload: Any = None


@dataclass(frozen=True)
class EventState:
    events: tuple = ()
    current_event: Optional[dict] = None
    my_inscriptions: tuple = ()
    loading: bool = False
    error: Optional[str] = None
    pagination: dict = field(default_factory=dict)


def _shift_participants(event: Optional[dict], event_id: Any, delta: int) -> Optional[dict]:
    if event is None or event_id is None or event.get("id") != event_id:
        return event
    count = max(0, event.get("currentParticipants", 0) + delta)
    return {**event, "currentParticipants": count}


def reduce(state: EventState, action: Action) -> EventState:
    """Pure transition function. Unknown actions return the state unchanged."""
    kind = action.type
    payload = action.payload

    if kind is ActionType.SET_LOADING:
        return replace(state, loading=bool(payload))
    if kind is ActionType.SET_ERROR:
        return replace(state, error=payload)
    if kind is ActionType.SET_EVENTS:
        return replace(state, events=tuple(payload["events"]), pagination=payload.get("pagination") or {})
    if kind is ActionType.SET_CURRENT_EVENT:
        return replace(state, current_event=payload)
    if kind is ActionType.SET_MY_INSCRIPTIONS:
        return replace(state, my_inscriptions=tuple(payload))
    if kind is ActionType.ADD_INSCRIPTION:
        return replace(
            state,
            my_inscriptions=state.my_inscriptions + (payload,),
            current_event=_shift_participants(state.current_event, payload.get("eventId"), +1),
        )
    if kind is ActionType.REMOVE_INSCRIPTION:
        removed = next((i for i in state.my_inscriptions if i.get("id") == payload), None)
        if removed is None:
            return state
        # Waitlist rows never held a seat, so the server leaves the counter alone
        held_seat = removed.get("status", "confirmed") == "confirmed"
        return replace(
            state,
            my_inscriptions=tuple(i for i in state.my_inscriptions if i.get("id") != payload),
            current_event=_shift_participants(state.current_event, removed.get("eventId"), -1)
            if held_seat else state.current_event,
        )
    return state


class EventStore:
    """Holds an EventState and mutates it through API calls."""

    def __init__(self, api: AcaApiClient, state: Optional[EventState] = None):
        self.api = api
        self.state = state or EventState()

    def dispatch(self, action: Action) -> EventState:
        self.state = reduce(self.state, action)
        return self.state

    def is_registered(self, event_id: int) -> bool:
        return any(
            i.get("eventId") == event_id and i.get("status") != "cancelled"
            for i in self.state.my_inscriptions
        )

    async def _call(self, coro, fallback_error: str) -> Optional[dict]:
        self.dispatch(Action(ActionType.SET_LOADING, True))
        try:
            return await coro
        except ApiError as e:
            self.dispatch(Action(ActionType.SET_ERROR, e.message or fallback_error))
            return None
        finally:
            self.dispatch(Action(ActionType.SET_LOADING, False))

    async def fetch_events(self, **filters: Any) -> None:
        body = await self._call(self.api.get_events(**filters), "Error al cargar eventos")
        if body is not None:
            self.dispatch(Action(
                ActionType.SET_EVENTS,
                {"events": body.get("data", []), "pagination": body.get("pagination")},
            ))

    async def fetch_event(self, event_id: int) -> None:
        body = await self._call(self.api.get_event(event_id), "Error al cargar evento")
        if body is not None:
            self.dispatch(Action(ActionType.SET_CURRENT_EVENT, body.get("data")))

    async def fetch_my_inscriptions(self) -> None:
        body = await self._call(self.api.get_my_inscriptions(), "Error al cargar inscripciones")
        if body is not None:
            self.dispatch(Action(ActionType.SET_MY_INSCRIPTIONS, body.get("data", [])))

    async def register(self, event_id: int) -> bool:
        body = await self._call(self.api.inscribe(event_id), "Error al inscribirse")
        if body is None:
            return False
        self.dispatch(Action(ActionType.ADD_INSCRIPTION, body["data"]))
        return True

    async def cancel(self, inscription_id: str) -> bool:
        body = await self._call(self.api.cancel_inscription(inscription_id), "Error al cancelar inscripción")
        if body is None:
            return False
        self.dispatch(Action(ActionType.REMOVE_INSCRIPTION, inscription_id))
        return True

    def clear_error(self) -> None:
        self.dispatch(Action(ActionType.SET_ERROR, None))
