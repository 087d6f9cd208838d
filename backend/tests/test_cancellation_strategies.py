"""
Tests for how cancellation groups its writes, including partial failure.
"""

import pytest
from sqlalchemy import delete
from sqlalchemy.exc import OperationalError

from app.core.config import get_settings
from app.core.errors import InternalFailure, NotFound, PartiallyApplied
from app.core.metrics import participant_counter_drift
from app.core.security import AuthUser
from app.models.inscription import Inscription
from app.services import strategy_factory
from app.services.inscription_service import cancel_inscription
from app.services.interfaces import SequentialCancellation, TransactionalCancellation
from conftest import load_event, load_inscription


async def _failing_release(db, event_id):
    raise OperationalError("UPDATE eventos", {}, Exception("database is locked"))


@pytest.mark.parametrize("strategy_cls", [TransactionalCancellation, SequentialCancellation])
@pytest.mark.asyncio
async def test_strategy_deletes_and_releases_seat(
    strategy_cls, session_factory, member, test_event, test_inscription
):
    async with session_factory() as db:
        await cancel_inscription(db, test_inscription.id, AuthUser(id=member.id), strategy=strategy_cls())

    assert await load_inscription(session_factory, test_inscription.id) is None
    assert (await load_event(session_factory, test_event.id)).current_participants == 4


@pytest.mark.asyncio
async def test_sequential_reports_partial_application(
    session_factory, member, test_event, test_inscription, monkeypatch
):
    """Delete committed, decrement failed: row gone, counter untouched, drift counted."""
    monkeypatch.setattr(
        "app.services.interfaces.sequential_cancellation.release_seat", _failing_release
    )
    drift_before = participant_counter_drift._value.get()

    async with session_factory() as db:
        with pytest.raises(PartiallyApplied) as exc_info:
            await cancel_inscription(
                db, test_inscription.id, AuthUser(id=member.id), strategy=SequentialCancellation()
            )

    assert exc_info.value.status_code == 500
    assert exc_info.value.code == "partially_applied"
    assert await load_inscription(session_factory, test_inscription.id) is None
    assert (await load_event(session_factory, test_event.id)).current_participants == 5
    assert participant_counter_drift._value.get() == drift_before + 1


@pytest.mark.asyncio
async def test_transactional_failure_applies_nothing(
    session_factory, member, test_event, test_inscription, monkeypatch
):
    monkeypatch.setattr(
        "app.services.interfaces.transactional_cancellation.release_seat", _failing_release
    )

    async with session_factory() as db:
        with pytest.raises(InternalFailure) as exc_info:
            await cancel_inscription(
                db, test_inscription.id, AuthUser(id=member.id), strategy=TransactionalCancellation()
            )

    assert not isinstance(exc_info.value, PartiallyApplied)
    assert await load_inscription(session_factory, test_inscription.id) is not None
    assert (await load_event(session_factory, test_event.id)).current_participants == 5


@pytest.mark.parametrize("strategy_cls", [TransactionalCancellation, SequentialCancellation])
@pytest.mark.asyncio
async def test_losing_a_concurrent_delete_is_not_found(
    strategy_cls, session_factory, test_event, test_inscription
):
    """The row vanished between load and delete: NotFound, no decrement."""
    async with session_factory() as db:
        inscription = await db.get(Inscription, test_inscription.id)

        async with session_factory() as other:
            await other.execute(delete(Inscription).where(Inscription.id == test_inscription.id))
            await other.commit()

        with pytest.raises(NotFound):
            await strategy_cls().remove(db, inscription)

    assert (await load_event(session_factory, test_event.id)).current_participants == 5


@pytest.mark.asyncio
async def test_partial_failure_envelope(client, auth_headers, test_inscription, monkeypatch):
    monkeypatch.setattr(strategy_factory, "_strategy", SequentialCancellation())
    monkeypatch.setattr(
        "app.services.interfaces.sequential_cancellation.release_seat", _failing_release
    )

    response = await client.delete(f"/api/inscripciones/{test_inscription.id}", headers=auth_headers)

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert body["code"] == "partially_applied"


def test_factory_selects_configured_strategy(monkeypatch):
    settings = get_settings()

    monkeypatch.setattr(settings, "CANCELLATION_STRATEGY", "sequential")
    assert isinstance(strategy_factory.get_cancellation_strategy(), SequentialCancellation)

    monkeypatch.setattr(settings, "CANCELLATION_STRATEGY", "transactional")
    assert isinstance(strategy_factory.get_cancellation_strategy(), TransactionalCancellation)

    monkeypatch.setattr(settings, "CANCELLATION_STRATEGY", "unknown")
    assert isinstance(strategy_factory.get_cancellation_strategy(), TransactionalCancellation)
