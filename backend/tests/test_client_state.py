"""
Tests for the client-side state mirror: reducer and store.
"""

import pytest
from httpx import AsyncClient

from app.client import AcaApiClient, Action, ActionType, EventState, EventStore, reduce
from conftest import _headers_for


def _state(current_participants=5, event_id=7):
    return EventState(
        current_event={"id": event_id, "title": "Encuentro", "currentParticipants": current_participants},
        my_inscriptions=(
            {"id": "i42", "eventId": 7, "status": "confirmed"},
            {"id": "i43", "eventId": 9, "status": "confirmed"},
        ),
    )


def test_remove_inscription_decrements_matching_event():
    state = reduce(_state(), Action(ActionType.REMOVE_INSCRIPTION, "i42"))

    assert [i["id"] for i in state.my_inscriptions] == ["i43"]
    assert state.current_event["currentParticipants"] == 4


def test_remove_inscription_for_another_event_keeps_count():
    state = reduce(_state(), Action(ActionType.REMOVE_INSCRIPTION, "i43"))

    assert [i["id"] for i in state.my_inscriptions] == ["i42"]
    assert state.current_event["currentParticipants"] == 5


def test_remove_inscription_never_goes_below_zero():
    state = reduce(_state(current_participants=0), Action(ActionType.REMOVE_INSCRIPTION, "i42"))
    assert state.current_event["currentParticipants"] == 0


def test_remove_waitlist_inscription_keeps_count():
    state = reduce(
        EventState(
            current_event={"id": 7, "currentParticipants": 5},
            my_inscriptions=({"id": "i44", "eventId": 7, "status": "waitlist"},),
        ),
        Action(ActionType.REMOVE_INSCRIPTION, "i44"),
    )

    assert state.my_inscriptions == ()
    assert state.current_event["currentParticipants"] == 5


def test_remove_unknown_inscription_is_a_no_op():
    before = _state()
    after = reduce(before, Action(ActionType.REMOVE_INSCRIPTION, "missing"))
    assert after == before


def test_remove_without_current_event():
    state = reduce(
        EventState(my_inscriptions=({"id": "i42", "eventId": 7},)),
        Action(ActionType.REMOVE_INSCRIPTION, "i42"),
    )
    assert state.my_inscriptions == ()
    assert state.current_event is None


def test_add_inscription_increments_matching_event():
    state = reduce(_state(), Action(ActionType.ADD_INSCRIPTION, {"id": "i50", "eventId": 7}))
    assert state.my_inscriptions[-1]["id"] == "i50"
    assert state.current_event["currentParticipants"] == 6


def test_reducer_does_not_mutate_input():
    before = _state()
    reduce(before, Action(ActionType.REMOVE_INSCRIPTION, "i42"))
    assert len(before.my_inscriptions) == 2
    assert before.current_event["currentParticipants"] == 5


@pytest.mark.asyncio
async def test_store_register_then_cancel(client: AsyncClient, member, test_event):
    token = _headers_for(member)["Authorization"].split(" ", 1)[1]
    store = EventStore(AcaApiClient(http=client, token=token))

    await store.fetch_event(test_event.id)
    assert store.state.current_event["currentParticipants"] == 5
    assert not store.is_registered(test_event.id)

    assert await store.register(test_event.id) is True
    assert store.is_registered(test_event.id)
    assert store.state.current_event["currentParticipants"] == 6

    inscription_id = store.state.my_inscriptions[0]["id"]
    assert await store.cancel(inscription_id) is True
    assert not store.is_registered(test_event.id)
    assert store.state.current_event["currentParticipants"] == 5
    assert store.state.loading is False
    assert store.state.error is None


@pytest.mark.asyncio
async def test_store_failed_cancel_keeps_mirror(client: AsyncClient, other_member, test_event, test_inscription):
    token = _headers_for(other_member)["Authorization"].split(" ", 1)[1]
    store = EventStore(AcaApiClient(http=client, token=token))
    await store.fetch_event(test_event.id)
    store.dispatch(Action(ActionType.SET_MY_INSCRIPTIONS, [
        {"id": test_inscription.id, "eventId": test_event.id, "status": "confirmed"},
    ]))
    before = store.state

    assert await store.cancel(test_inscription.id) is False

    assert store.state.error == "No autorizado para cancelar esta inscripción"
    assert store.state.my_inscriptions == before.my_inscriptions
    assert store.state.current_event == before.current_event

    store.clear_error()
    assert store.state.error is None


@pytest.mark.asyncio
async def test_store_fetches_listing_and_my_inscriptions(client: AsyncClient, member, test_event, test_inscription):
    token = _headers_for(member)["Authorization"].split(" ", 1)[1]
    store = EventStore(AcaApiClient(http=client, token=token))

    await store.fetch_events(type="encuentro", search=None)
    await store.fetch_my_inscriptions()

    assert [e["id"] for e in store.state.events] == [test_event.id]
    assert store.state.pagination["total"] == 1
    assert [i["id"] for i in store.state.my_inscriptions] == [test_inscription.id]
    assert store.is_registered(test_event.id)
