"""
Cancellation strategy interface.
Allows swapping how the inscription delete and the participant counter
decrement are grouped, depending on what the store guarantees.
"""

from abc import ABC, abstractmethod

from sqlalchemy import delete, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.event import Event
from app.models.inscription import Inscription


class CancellationStrategy(ABC):
    """
    Interface for removing an inscription and releasing its seat.

    Implementations:
    - TransactionalCancellation: delete + decrement in one transaction
    - SequentialCancellation: delete committed first, then the decrement;
      reports PartiallyApplied when only the first step landed
    """

    name: str = "abstract"

    @abstractmethod
    async def remove(self, db: AsyncSession, inscription: Inscription) -> bool:
        """
        Delete the inscription row and release its seat on the event.

        Args:
            db: Session the inscription was loaded with
            inscription: Row to remove

        Returns:
            True if the event counter was decremented, False if the
            inscription did not hold a seat or the counter was already 0

        Raises:
            NotFound: the row was deleted concurrently
            InternalFailure: nothing was applied
            PartiallyApplied: the row is gone, the counter was not decremented
        """
        pass


async def delete_inscription_row(db: AsyncSession, inscription_id: str) -> bool:
    """DELETE by id. False when another request removed it first."""
    result = await db.execute(
        delete(Inscription)
        .where(Inscription.id == inscription_id)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def release_seat(db: AsyncSession, event_id: int) -> bool:
    """
    Atomic floored decrement of eventos.current_participants.

    A single conditional UPDATE: concurrent cancellations cannot lose
    updates, and a counter already at 0 matches no row and stays 0.
    """
    result = await db.execute(
        update(Event)
        .where(Event.id == event_id, Event.current_participants > 0)
        .values(current_participants=Event.current_participants - 1)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1
